"""Models handed to the reporting layer once a pipeline run finishes."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from wiz_scan_action.errors import ScanError
from wiz_scan_action.models.result import ScanResult

DEFAULT_DISPLAY_NAME = "Wiz Scanner"
BASE_URL_NAME = "wiz-results"


@dataclass(frozen=True, kw_only=True)
class ArtifactInfo:
    """Name of the artifact file for one scan within a build."""

    name: str
    suffix: str | None = None


@dataclass(frozen=True, kw_only=True)
class ScanReport:
    """A scan's artifact together with its parsed result, if any."""

    artifact: ArtifactInfo
    artifact_path: Path
    result: ScanResult | None = None
    warnings: Sequence[str] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        if self.artifact.suffix is None:
            return DEFAULT_DISPLAY_NAME
        return f"{DEFAULT_DISPLAY_NAME} {self.artifact.suffix}"

    @property
    def url_name(self) -> str:
        if self.artifact.suffix is None:
            return BASE_URL_NAME
        return f"{BASE_URL_NAME}-{self.artifact.suffix}"


@dataclass(frozen=True, kw_only=True)
class ScanOutcome:
    """Final outcome of a pipeline run."""

    exit_code: int
    report: ScanReport | None = None
    message: str | None = None

    def raise_for_status(self) -> None:
        """Raise ``ScanError`` unless the scan exited with zero."""
        if self.exit_code != 0:
            raise ScanError(
                self.message or f"Wiz scanning failed with exit code: {self.exit_code}",
                exit_code=self.exit_code,
            )
