"""Models describing the provisioned Wiz CLI and its trust material."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

WIZCLI_UNIX_NAME = "wizcli"
WIZCLI_WINDOWS_NAME = "wizcli.exe"


@dataclass(frozen=True, kw_only=True)
class ToolDescriptor:
    """A downloaded and verified Wiz CLI executable."""

    url: str
    path: Path
    is_windows: bool
    is_mac: bool = False
    os_name: str = ""
    arch: str = ""

    @property
    def executable_name(self) -> str:
        return WIZCLI_WINDOWS_NAME if self.is_windows else WIZCLI_UNIX_NAME


@dataclass(frozen=True, kw_only=True)
class TrustArtifacts:
    """Transient files used to verify the executable."""

    checksum_path: Path
    signature_path: Path
    public_key_path: Path

    def paths(self) -> Sequence[Path]:
        return (self.checksum_path, self.signature_path, self.public_key_path)
