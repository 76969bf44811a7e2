"""Shared fixtures for OpenPGP release signing."""

import shutil

import gnupg
import pytest

from wiz_scan_action.testing.signing import PgpSigner, generate_signer


@pytest.fixture(scope="session")
def signing_keyring(tmp_path_factory: pytest.TempPathFactory) -> gnupg.GPG:
    """Keyring holding the test signing keys."""
    if shutil.which("gpg") is None:
        pytest.skip("gpg is not installed")
    home = tmp_path_factory.mktemp("gnupg")
    home.chmod(0o700)
    return gnupg.GPG(gnupghome=str(home))


@pytest.fixture(scope="session")
def release_signer(signing_keyring: gnupg.GPG) -> PgpSigner:
    """Key that signs test releases."""
    return generate_signer(signing_keyring, "Release Signer")


@pytest.fixture(scope="session")
def other_signer(signing_keyring: gnupg.GPG) -> PgpSigner:
    """Key that is never trusted."""
    return generate_signer(signing_keyring, "Other Signer")
