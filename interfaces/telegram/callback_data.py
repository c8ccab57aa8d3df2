from __future__ import annotations

# Internal user IDs look like "telegram:12345", so ":" cannot separate fields.
_SEPARATOR = "|"
CHALLENGE_PREFIX = "vs"


def encode_challenge(challenger_id: str, opponent_id: str) -> str:
    """
    Encode a "pick opponent" callback.

    Format: vs|{challenger_id}|{opponent_id}
    """

    return _SEPARATOR.join((CHALLENGE_PREFIX, challenger_id, opponent_id))


def parse_challenge(data: str) -> tuple[str, str]:
    parts = data.split(_SEPARATOR)
    if len(parts) != 3 or parts[0] != CHALLENGE_PREFIX or not parts[1] or not parts[2]:
        raise ValueError(f"Invalid challenge callback data: {data}")

    challenger_id = parts[1]
    opponent_id = parts[2]
    return challenger_id, opponent_id


def is_challenge(data: str) -> bool:
    return data.startswith(CHALLENGE_PREFIX + _SEPARATOR)
