"""Document storage collaborator.

The marketplace never streams files itself. It hands buyers a short-lived
link to the blob store and asks the store to drop files of deleted listings.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import quote

from jose import jwt

from app.config import settings

logger = logging.getLogger(__name__)

DOWNLOAD_TOKEN_TYPE = "download"


class DocumentStorage:
    """What the catalogue needs from blob storage."""

    def signed_url(self, file_path: str, expires_in: int) -> str:
        raise NotImplementedError

    def delete(self, file_path: str) -> None:
        raise NotImplementedError


class TokenSignedStorage(DocumentStorage):
    """Links of the form ``<base>/<path>?token=<jwt>`` for a file server that checks the token."""

    def __init__(self, base_url: Optional[str] = None, secret: Optional[str] = None):
        self.base_url = (base_url or settings.STORAGE_BASE_URL).rstrip("/")
        self.secret = secret or settings.SECRET_KEY

    def signed_url(self, file_path: str, expires_in: int) -> str:
        token = jwt.encode(
            {
                "path": file_path,
                "type": DOWNLOAD_TOKEN_TYPE,
                "exp": datetime.utcnow() + timedelta(seconds=expires_in),
            },
            self.secret,
            algorithm=settings.ALGORITHM,
        )
        return f"{self.base_url}/{quote(file_path)}?token={token}"

    def delete(self, file_path: str) -> None:
        # Objects are swept by the file server's lifecycle job once unreferenced
        logger.info(f"Released storage object {file_path}")
