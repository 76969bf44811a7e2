"""Signature and checksum verification of the downloaded Wiz CLI."""

import hashlib
import logging
import stat
import tempfile
from pathlib import Path

import gnupg

from wiz_scan_action.errors import VerificationError

log = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
KEYRING_PREFIX = "wiz-gnupg-"


def verify(
    executable_path: Path,
    checksum_path: Path,
    signature_path: Path,
    public_key_path: Path,
    *,
    is_windows: bool = False,
) -> None:
    """Verify the CLI against its signed checksum and make it executable.

    The signature is checked over the checksum file before the checksum is
    used, so a forged checksum file can never vouch for a binary.

    Raises:
        VerificationError: With reason ``"signature"`` or ``"checksum"``

    """
    checksum_bytes = checksum_path.read_bytes()
    verify_signature(checksum_bytes, signature_path, public_key_path.read_bytes())
    verify_checksum(executable_path, checksum_bytes.decode("utf-8", errors="replace"))

    if not is_windows:
        make_executable(executable_path)

    log.info("Successfully verified Wiz CLI signature and checksum")


def verify_signature(data: bytes, signature_path: Path, public_key: bytes) -> None:
    """Verify an OpenPGP detached signature over ``data``.

    The armored or binary ``public_key`` is imported into a throwaway keyring,
    so only signatures made by that key (or its subkeys) are accepted.
    """
    with tempfile.TemporaryDirectory(
        prefix=KEYRING_PREFIX, ignore_cleanup_errors=True
    ) as home:
        try:
            gpg = gnupg.GPG(gnupghome=home)
        except (OSError, ValueError) as exc:
            raise VerificationError(
                "signature", f"gpg is not available: {exc}"
            ) from exc

        imported = gpg.import_keys(public_key)
        if not imported.fingerprints:
            raise VerificationError("signature", "invalid public key")

        verified = gpg.verify_data(str(signature_path), data)
        if not verified.valid:
            raise VerificationError(
                "signature",
                f"signature does not match ({verified.status or 'no valid signature'})",
            )
        log.debug("Checksum signed by key %s", verified.pubkey_fingerprint)


def verify_checksum(executable_path: Path, expected: str) -> None:
    """Compare the SHA-256 digest of the executable to the expected hex digest."""
    actual = sha256_file(executable_path)
    if expected.strip().lower() != actual:
        raise VerificationError("checksum", "SHA256 checksum does not match")


def sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        while chunk := handle.read(CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


def make_executable(path: Path) -> None:
    """Grant execute permission to the owner only."""
    mode = path.stat().st_mode
    mode = (mode | stat.S_IXUSR) & ~(stat.S_IXGRP | stat.S_IXOTH)
    path.chmod(mode)
