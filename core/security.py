"""
Hash delle password: PBKDF2-HMAC-SHA256 con salt casuale.

Formato salvato: "pbkdf2_sha256$<iterazioni>$<salt hex>$<hash hex>".
Il confronto usa hmac.compare_digest (tempo costante).
"""

import hashlib
import hmac
import secrets
from typing import Optional

from config import PBKDF2_ITERATIONS

ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, salt: Optional[str] = None, iterations: Optional[int] = None) -> str:
    salt = salt or secrets.token_hex(16)
    iterations = iterations or PBKDF2_ITERATIONS
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$", 3)
        iterations = int(iterations)
    except (AttributeError, ValueError):
        return False
    if algorithm != ALGORITHM or iterations < 1:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", (password or "").encode("utf-8"), salt.encode("utf-8"), iterations)
    return hmac.compare_digest(digest.hex(), expected)
