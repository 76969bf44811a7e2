"""HTTP download of the Wiz CLI and its verification files."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import aiohttp

from wiz_scan_action.errors import DownloadError, TransportError

log = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_DOWNLOAD_TIMEOUT = 60.0


@asynccontextmanager
async def open_session(
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
) -> AsyncGenerator[aiohttp.ClientSession, None]:
    """Create a client session with separate connect and transfer timeouts."""
    timeout = aiohttp.ClientTimeout(total=download_timeout, connect=connect_timeout)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        yield session


async def fetch(session: aiohttp.ClientSession, url: str, target: Path) -> Path:
    """Download ``url`` to ``target``, replacing any existing file.

    Raises:
        DownloadError: If the server answers with anything but 200
        TransportError: On timeouts, connection or file system errors

    """
    log.debug("Downloading %s to %s", url, target)
    try:
        async with session.get(url) as response:
            if response.status != 200:
                raise DownloadError(url, response.status)
            with target.open("wb") as handle:
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    handle.write(chunk)
    except TimeoutError as exc:
        raise TransportError(f"Download of {url} timed out") from exc
    except aiohttp.ClientError as exc:
        raise TransportError(f"Download of {url} failed: {exc}") from exc
    except OSError as exc:
        raise TransportError(f"Could not write {target}: {exc}") from exc

    return target
