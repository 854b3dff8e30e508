"""HTTP transfer primitive used by the model store."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import requests

logger = logging.getLogger(__name__)

# Called with (bytes_written, total_bytes); total is None when the server did not say.
ProgressCallback = Callable[[int, int | None], None]


class Transfer(Protocol):
    def download(self, url: str, destination: Path, on_progress: ProgressCallback) -> int: ...


class HttpTransfer:
    """Stream a remote file to disk with ``requests``."""

    def __init__(self, chunk_size: int = 1024 * 1024, timeout: float = 30.0):
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.session = requests.Session()

    def download(self, url: str, destination: Path, on_progress: ProgressCallback) -> int:
        """
        Write the body of ``url`` to ``destination``.

        Returns the HTTP status code. The body is only written for a 200
        response; network errors propagate as ``requests.RequestException``.
        """
        logger.info(f"GET {url}")
        with self.session.get(url, stream=True, timeout=self.timeout) as response:
            if response.status_code != 200:
                return response.status_code

            total = int(response.headers.get("Content-Length") or 0) or None
            written = 0
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if not chunk:
                        continue
                    f.write(chunk)
                    written += len(chunk)
                    on_progress(written, total)

            return response.status_code
