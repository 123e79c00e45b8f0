"""Password hashing helpers backed by bcrypt.

bcrypt is deliberately slow; async callers should run these functions in a
worker thread.
"""

import bcrypt

# bcrypt only reads the first 72 bytes of a password
_MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with a fresh salt at the given bcrypt cost."""
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a value produced by :func:`hash_password`.

    Malformed or non-bcrypt hashes never match.
    """
    try:
        return bcrypt.checkpw(_encode(password), encoded.encode("utf-8"))
    except ValueError:
        return False
