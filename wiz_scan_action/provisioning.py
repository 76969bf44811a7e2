"""Download, verification and cleanup of the Wiz CLI binary."""

import asyncio
import logging
import platform
from importlib import resources
from pathlib import Path

import aiohttp

from wiz_scan_action.cleanup import remove_files
from wiz_scan_action.config import CLI_URL_PATTERN, WIZ_DOWNLOADS_BASE
from wiz_scan_action.errors import ValidationError, VerificationError
from wiz_scan_action.fetcher import fetch
from wiz_scan_action.models.tool import (
    WIZCLI_UNIX_NAME,
    WIZCLI_WINDOWS_NAME,
    ToolDescriptor,
    TrustArtifacts,
)
from wiz_scan_action.verifier import verify

log = logging.getLogger(__name__)

CHECKSUM_FILENAME = "wizcli-sha256"
SIGNATURE_FILENAME = "wizcli-sha256.sig"
PUBLIC_KEY_FILENAME = "public_key.asc"


def load_trusted_key(path: Path | None = None) -> bytes:
    """Return the OpenPGP public key releases must be signed with.

    The key bundled with this package is used unless an operator pinned key
    file is given.

    Raises:
        VerificationError: If the key file cannot be read

    """
    try:
        if path is not None:
            return path.read_bytes()
        return (
            resources.files("wiz_scan_action")
            .joinpath("keys", PUBLIC_KEY_FILENAME)
            .read_bytes()
        )
    except OSError as exc:
        raise VerificationError("signature", f"cannot read trusted key: {exc}") from exc


def validate_cli_url(url: str) -> None:
    if not CLI_URL_PATTERN.fullmatch(url):
        raise ValidationError(
            "Invalid Wiz CLI URL format. Expected: "
            f"{WIZ_DOWNLOADS_BASE}{{version}}/{{binary_name}}"
        )


def trust_artifacts_in(workspace: Path) -> TrustArtifacts:
    return TrustArtifacts(
        checksum_path=workspace / CHECKSUM_FILENAME,
        signature_path=workspace / SIGNATURE_FILENAME,
        public_key_path=workspace / PUBLIC_KEY_FILENAME,
    )


async def provision_cli(
    session: aiohttp.ClientSession,
    workspace: Path,
    cli_url: str,
    trusted_key: bytes,
    *,
    os_name: str | None = None,
    arch: str | None = None,
) -> ToolDescriptor:
    """Download the Wiz CLI into ``workspace`` and verify it.

    The checksum, signature and key copy are removed whether verification
    succeeds or not. On failure the downloaded executable is removed too.

    Args:
        session: HTTP session used for the three downloads
        workspace: Directory the executable is placed in
        cli_url: Download URL of the executable
        trusted_key: OpenPGP public key the checksum signature must verify against
        os_name: Operating system name, detected when omitted
        arch: Machine architecture, detected when omitted

    Returns:
        Descriptor of the verified executable

    """
    validate_cli_url(cli_url)

    os_name = (os_name or platform.system()).lower()
    arch = (arch or platform.machine()).lower()
    is_windows = os_name.startswith("win")
    is_mac = "mac" in os_name or "darwin" in os_name

    cli_path = workspace / (WIZCLI_WINDOWS_NAME if is_windows else WIZCLI_UNIX_NAME)
    artifacts = trust_artifacts_in(workspace)

    log.info("Downloading Wiz CLI from: %s", cli_url)
    try:
        await fetch(session, cli_url, cli_path)
        log.info("Download completed successfully")

        checksum_url = f"{cli_url}-sha256"
        try:
            await fetch(session, checksum_url, artifacts.checksum_path)
            await fetch(session, f"{checksum_url}.sig", artifacts.signature_path)
            artifacts.public_key_path.write_bytes(trusted_key)

            # blocking: runs gpg and hashes the binary
            await asyncio.to_thread(
                verify,
                cli_path,
                artifacts.checksum_path,
                artifacts.signature_path,
                artifacts.public_key_path,
                is_windows=is_windows,
            )
        finally:
            remove_files(*artifacts.paths())
    except BaseException:
        remove_files(cli_path)
        raise

    return ToolDescriptor(
        url=cli_url,
        path=cli_path,
        is_windows=is_windows,
        is_mac=is_mac,
        os_name=os_name,
        arch=arch,
    )
