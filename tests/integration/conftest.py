"""Fixtures for integration tests using fake Wiz CLI executables."""

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import pytest
from aioresponses import aioresponses as aioresponses_cls

from wiz_scan_action.testing.signing import PgpSigner

CLI_URL = "https://downloads.wiz.io/wizcli/0.50.0/wizcli-linux-amd64"

SCAN_REPORT: dict[str, Any] = {
    "createdAt": "2024-01-15T10:30:00Z",
    "scanOriginResource": {"name": "alpine:latest"},
    "status": {"verdict": "PASSED_BY_POLICY"},
    "reportUrl": "https://app.wiz.io/reports/1",
    "result": {
        "analytics": {
            "vulnerabilities": {"criticalCount": 2, "totalCount": 2},
            "secrets": {"totalCount": 0},
        }
    },
}


class MakeCliFn(Protocol):
    """Protocol for fake CLI factory."""

    def __call__(
        self,
        *,
        auth_exit: int = 0,
        auth_stderr: str = "",
        scan_exit: int = 0,
        scan_stdout: str = ...,
        scan_stderr: str = "",
        logout_exit: int = 0,
        scan_sleep: float = 0,
    ) -> bytes:
        """Return the bytes of a fake CLI script."""


class ServeReleaseFn(Protocol):
    """Protocol for registering a signed release with the HTTP mock."""

    def __call__(
        self,
        binary: bytes,
        *,
        checksum: str | None = None,
        sign_checksum: bytes | None = None,
        status: int = 200,
    ) -> None:
        """Serve a binary, its checksum and signature at CLI_URL."""


@dataclass(frozen=True, kw_only=True)
class CallLog:
    """File the fake CLI appends its arguments to."""

    path: Path

    def calls(self) -> list[str]:
        if not self.path.exists():
            return []
        return self.path.read_text().splitlines()


@pytest.fixture
def call_log(tmp_path: Path) -> CallLog:
    """Record of fake CLI invocations, kept outside the workspace."""
    return CallLog(path=tmp_path / "calls.log")


@pytest.fixture
def make_cli(call_log: CallLog) -> MakeCliFn:
    """Return a function building fake Wiz CLI shell scripts."""

    def _make(
        *,
        auth_exit: int = 0,
        auth_stderr: str = "",
        scan_exit: int = 0,
        scan_stdout: str = json.dumps(SCAN_REPORT),
        scan_stderr: str = "",
        logout_exit: int = 0,
        scan_sleep: float = 0,
    ) -> bytes:
        script = f"""#!/bin/sh
echo "$*" >> "{call_log.path}"
if [ "$1" = "auth" ]; then
  if [ "$2" = "--logout" ]; then
    exit {logout_exit}
  fi
  cat >&2 <<'WIZ_STDERR'
{auth_stderr}
WIZ_STDERR
  exit {auth_exit}
fi
sleep {scan_sleep}
cat <<'WIZ_STDOUT'
{scan_stdout}
WIZ_STDOUT
cat >&2 <<'WIZ_STDERR'
{scan_stderr}
WIZ_STDERR
exit {scan_exit}
"""
        return script.encode()

    return _make


@pytest.fixture
def trusted_key(release_signer: PgpSigner) -> bytes:
    """Armored OpenPGP public key matching the release signer."""
    return release_signer.public_key


@pytest.fixture
def serve_release(
    aioresponses: aioresponses_cls, release_signer: PgpSigner
) -> ServeReleaseFn:
    """Return a function registering release downloads with the HTTP mock."""

    def _serve(
        binary: bytes,
        *,
        checksum: str | None = None,
        sign_checksum: bytes | None = None,
        status: int = 200,
    ) -> None:
        checksum_bytes = (
            checksum if checksum is not None else hashlib.sha256(binary).hexdigest()
        ).encode()
        signature = release_signer.sign(
            sign_checksum if sign_checksum is not None else checksum_bytes
        )
        aioresponses.get(CLI_URL, status=status, body=binary)
        aioresponses.get(f"{CLI_URL}-sha256", status=200, body=checksum_bytes)
        aioresponses.get(f"{CLI_URL}-sha256.sig", status=200, body=signature)

    return _serve


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace directory."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path
