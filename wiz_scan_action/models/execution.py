"""Models for process executions."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class ScanExecution:
    """Runtime record of one scan process run."""

    exit_code: int
    stdout_path: Path
    stderr_path: Path
    artifact_path: Path | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
