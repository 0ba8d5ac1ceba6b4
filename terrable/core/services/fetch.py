"""
Content fetcher — HTTP GET with absence instead of exceptions.

A failed fetch is an expected outcome (wrong version, server hiccup),
so every transport problem comes back as ``None`` with the reason
logged.  The caller decides whether absence is fatal.  No retries.
"""

from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.request
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

from terrable import __version__

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192
_USER_AGENT = f"terrable/{__version__}"


def _fmt_size(n: int | float) -> str:
    """Format byte count to human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"


class HttpFetcher:
    """Streaming GET client built on ``urllib.request``.

    Args:
        timeout: Socket timeout in seconds for connect and each read.
            Expiry is treated like any other failed fetch.
    """

    def __init__(self, timeout: float = 60.0) -> None:
        self.timeout = timeout

    @contextmanager
    def open(self, url: str) -> Iterator[IO[bytes] | None]:
        """Yield the response body stream for ``url``, or None on failure."""
        try:
            req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
            resp = urllib.request.urlopen(req, timeout=self.timeout)  # noqa: S310
        except urllib.error.HTTPError as exc:
            logger.error("Failed to access file at %s. Response code: %s", url, exc.code)
            if exc.fp is not None:
                exc.close()
            yield None
            return
        except (urllib.error.URLError, TimeoutError, OSError, http.client.HTTPException) as exc:
            reason = getattr(exc, "reason", exc)
            logger.error("Failed to access file at %s: %s", url, reason)
            yield None
            return
        except ValueError as exc:
            # http.client.InvalidURL, or a URL urllib cannot parse at all
            logger.error("Cannot request %s: %s", url, exc)
            yield None
            return

        with resp:
            status = getattr(resp, "status", None) or resp.getcode()
            if status is not None and not 200 <= status < 300:
                logger.error("Failed to access file at %s. Response code: %s", url, status)
                yield None
                return
            yield resp

    def download(self, url: str, dest: Path) -> Path | None:
        """Stream ``url`` into ``dest`` (overwritten).  None on failure."""
        logger.info("Downloading %s to %s", url, dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with self.open(url) as stream:
            if stream is None:
                return None
            downloaded = 0
            try:
                with open(dest, "wb") as f:
                    while True:
                        chunk = stream.read(_CHUNK_SIZE)
                        if not chunk:
                            break
                        f.write(chunk)
                        downloaded += len(chunk)
            except (TimeoutError, OSError, http.client.HTTPException) as exc:
                # truncated bodies, mid-body socket timeouts and local write errors
                logger.error("Download of %s interrupted: %s", url, exc)
                dest.unlink(missing_ok=True)
                return None
        logger.info("Downloaded %s (%s)", dest.name, _fmt_size(downloaded))
        return dest

    def fetch_text(self, url: str, encoding: str = "utf-8") -> str | None:
        """Fetch a small text document.  None on failure."""
        with self.open(url) as stream:
            if stream is None:
                return None
            try:
                payload = stream.read()
            except (TimeoutError, OSError, http.client.HTTPException) as exc:
                logger.error("Reading %s failed: %s", url, exc)
                return None
        return payload.decode(encoding, errors="replace")
