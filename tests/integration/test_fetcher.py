"""Tests for downloading files over HTTP."""

from pathlib import Path

import aiohttp
import pytest
from aioresponses import aioresponses as aioresponses_cls

from wiz_scan_action.errors import DownloadError, TransportError
from wiz_scan_action.fetcher import fetch, open_session

URL = "https://downloads.wiz.io/wizcli/0.50.0/wizcli-linux-amd64"


async def test_writes_body(aioresponses: aioresponses_cls, tmp_path: Path) -> None:
    """A 200 response is streamed to the target file."""
    body = b"\x7fELF" + b"0" * (200 * 1024)
    aioresponses.get(URL, status=200, body=body)
    target = tmp_path / "wizcli"

    async with open_session() as session:
        result = await fetch(session, URL, target)

    assert result == target
    assert target.read_bytes() == body


async def test_replaces_existing_file(
    aioresponses: aioresponses_cls, tmp_path: Path
) -> None:
    """Existing content is overwritten."""
    aioresponses.get(URL, status=200, body=b"new")
    target = tmp_path / "wizcli"
    target.write_bytes(b"old content that is longer")

    async with open_session() as session:
        await fetch(session, URL, target)

    assert target.read_bytes() == b"new"


@pytest.mark.parametrize("status", [403, 404, 500])
async def test_non_200_status(
    aioresponses: aioresponses_cls, tmp_path: Path, status: int
) -> None:
    """Any status other than 200 raises DownloadError with the code."""
    aioresponses.get(URL, status=status)

    async with open_session() as session:
        with pytest.raises(DownloadError) as exc_info:
            await fetch(session, URL, tmp_path / "wizcli")

    assert exc_info.value.status == status
    assert f"HTTP code: {status}" in str(exc_info.value)
    assert not (tmp_path / "wizcli").exists()


async def test_timeout(aioresponses: aioresponses_cls, tmp_path: Path) -> None:
    """Timeouts surface as transport errors."""
    aioresponses.get(URL, exception=TimeoutError())

    async with open_session() as session:
        with pytest.raises(TransportError, match="timed out"):
            await fetch(session, URL, tmp_path / "wizcli")


async def test_connection_error(aioresponses: aioresponses_cls, tmp_path: Path) -> None:
    """Connection failures surface as transport errors."""
    aioresponses.get(URL, exception=aiohttp.ClientConnectionError("refused"))

    async with open_session() as session:
        with pytest.raises(TransportError) as exc_info:
            await fetch(session, URL, tmp_path / "wizcli")

    assert not isinstance(exc_info.value, DownloadError)


async def test_unwritable_target(aioresponses: aioresponses_cls, tmp_path: Path) -> None:
    """File system errors surface as transport errors."""
    aioresponses.get(URL, status=200, body=b"data")

    async with open_session() as session:
        with pytest.raises(TransportError, match="Could not write"):
            await fetch(session, URL, tmp_path / "missing" / "wizcli")
