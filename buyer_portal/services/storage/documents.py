"""
Filesystem document storage for uploaded invoice files.
"""

from pathlib import Path
from loguru import logger
from ...core.errors import PersistenceError
from .base import DocumentStorageBase


class LocalDocumentStorage(DocumentStorageBase):
    """
    Writes files into a local directory and returns a URL under base_url.

    Uploads with the same name overwrite, matching the upsert semantics of
    the invoice store.
    """

    def __init__(self, root_dir: str, base_url: str):
        self.root = Path(root_dir)
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def upload(self, file_name: str, content: bytes, content_type: str = "application/pdf") -> str:
        target = self.root / Path(file_name).name
        try:
            target.write_bytes(content)
        except OSError as e:
            logger.error(f"Could not store document {file_name}: {e}")
            raise PersistenceError(f"Could not store document: {e}") from e

        logger.info("Document stored", file_name=target.name, size=len(content), content_type=content_type)
        return f"{self.base_url}/{target.name}"
