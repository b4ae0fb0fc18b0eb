from __future__ import annotations

import secrets
import string

TOKEN_ALPHABET = string.ascii_letters + string.digits


def random_token(length: int = 40) -> str:
    """Return a random alphanumeric string used for generated file names."""
    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))
