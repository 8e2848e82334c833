import logging
import os
import time
from typing import Optional
from urllib.parse import quote, unquote, urlparse

from app.core.config import StorageSettings, settings
from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)


def storage_name(original_name: str, now_ms: Optional[int] = None) -> str:
    """`{epoch_millis}_{basename}` with any directory components removed."""
    base = os.path.basename((original_name or "").replace("\\", "/")) or "upload"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}_{base}"


class BlobStorage:
    """Uploaded resume files on local disk, addressed by a public URL prefix."""

    def __init__(self, config: StorageSettings = None):
        self.config = config or settings.storage

    @property
    def root(self) -> str:
        return self.config.directory

    def public_url(self, name: str) -> str:
        return f"{self.config.public_url.rstrip('/')}/{quote(name)}"

    def upload(self, name: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        """Write the file and return its public URL."""
        os.makedirs(self.root, exist_ok=True)
        path = os.path.join(self.root, name)
        try:
            with open(path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Storage upload error: {e}")
            raise StorageError(f"Storage error: {e}")
        logger.info(f"Stored {len(content)} bytes as {name}", extra={"content_type": content_type})
        return self.public_url(name)

    def path_from_url(self, file_url: Optional[str]) -> Optional[str]:
        """Stored object name for a public URL produced by upload(), or None."""
        if not file_url:
            return None
        prefix = urlparse(self.config.public_url).path.rstrip("/") + "/"
        path = urlparse(file_url).path
        if not path.startswith(prefix):
            return None
        name = unquote(path[len(prefix):])
        if not name or "/" in name or name in (".", ".."):
            return None
        return name

    def remove(self, name: str) -> None:
        path = os.path.join(self.root, name)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.info(f"Blob {name} already absent")
        except OSError as e:
            raise StorageError(f"Failed to delete {name}: {e}")
