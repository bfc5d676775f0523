import hashlib
import secrets

import bcrypt

from app.config import settings
from app.services.document_storage import storage

SHARE_TOKEN_BYTES = 32


def compute_file_hash(storage_path: str) -> str:
    """SHA-256 hex digest of the stored bytes. Raises OSError if unreadable."""
    digest = hashlib.sha256()
    for chunk in storage.iter_chunks(storage_path):
        digest.update(chunk)
    return digest.hexdigest()


def generate_share_token() -> str:
    return secrets.token_hex(SHARE_TOKEN_BYTES)


def hash_share_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.share_password_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_share_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
