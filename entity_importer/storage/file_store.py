"""Uploaded file storage."""

import itertools
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import FileUnreadable

logger = logging.getLogger(__name__)


REMOTE_SCHEMES = ("http", "https")


@dataclass
class StoredFile:
    """A registered upload, addressed by an opaque file id."""
    id: str
    uri: str
    filename: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)
    local_path: Optional[str] = None  # Set once a remote uri is fetched

    @property
    def is_remote(self) -> bool:
        return urlparse(self.uri).scheme in REMOTE_SCHEMES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "uri": self.uri,
            "filename": self.filename,
            "created_at": self.created_at.isoformat(),
        }


class FileStore:
    """
    Registry of uploaded files.

    Supports:
    - Local file paths
    - Remote http(s) references, fetched into the temp directory on first use
    """

    def __init__(
        self,
        temp_dir: Optional[str] = None,
        session: Optional[requests.Session] = None,
        retries: int = 3,
        backoff_factor: float = 2.0,
    ):
        """
        Initialize the file store.

        Args:
            temp_dir: Directory for fetched remote files
            session: Custom requests session
            retries: Retry count for remote fetches
            backoff_factor: Backoff factor between retries
        """
        self.temp_dir = temp_dir or tempfile.gettempdir()
        self._files: Dict[str, StoredFile] = {}
        self._ids = itertools.count(1)
        self._retries = retries
        self._backoff_factor = backoff_factor
        self._session = session

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self._retries,
            backoff_factor=self._backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = self._create_session()
        return self._session

    def register(self, uri: str, filename: Optional[str] = None) -> str:
        """
        Register a file and return its id.

        Args:
            uri: Local path or http(s) URL
            filename: Display name (defaults to the uri's base name)

        Returns:
            The new file id
        """
        file_id = str(next(self._ids))
        name = filename or os.path.basename(urlparse(uri).path) or uri
        self._files[file_id] = StoredFile(id=file_id, uri=uri, filename=name)
        logger.debug(f"Registered file {file_id}: {uri}")
        return file_id

    def load(self, file_id: Any) -> Optional[StoredFile]:
        return self._files.get(str(file_id))

    def resolve_path(self, stored: StoredFile) -> str:
        """
        Get a readable local path for a stored file.

        Raises:
            FileUnreadable: If a remote file cannot be fetched
        """
        if not stored.is_remote:
            return stored.uri

        if stored.local_path and os.path.exists(stored.local_path):
            return stored.local_path

        fd, path = tempfile.mkstemp(prefix="ENTITY_IMPORTER_UPLOAD_", dir=self.temp_dir)
        try:
            with os.fdopen(fd, 'wb') as f, self.session.get(stored.uri, stream=True, timeout=60) as response:
                response.raise_for_status()
                for chunk in response.iter_content(chunk_size=65536):
                    f.write(chunk)
        except requests.exceptions.RequestException as e:
            os.remove(path)
            raise FileUnreadable(f"Failed to fetch {stored.uri}: {e}", offending_id=stored.id) from e

        stored.local_path = path
        logger.info(f"Fetched {stored.uri} to {path}")
        return path

    def delete(self, file_id: Any) -> bool:
        """Delete a file record together with its local content."""
        stored = self._files.pop(str(file_id), None)
        if stored is None:
            return False

        path = stored.local_path if stored.is_remote else stored.uri
        if path and os.path.exists(path):
            os.remove(path)

        logger.debug(f"Deleted file {stored.id}: {stored.uri}")
        return True
