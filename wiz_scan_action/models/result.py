"""Models for parsed Wiz CLI scan results."""

import math
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wiz_scan_action.models.base import Model


def clamp_count(value: Any) -> int:
    """Coerce a raw JSON value into a non-negative count.

    Numbers and numeric strings are truncated toward zero; booleans, non-finite
    values and anything else count as zero.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return max(int(value), 0)
    return 0


Count = Annotated[int, BeforeValidator(clamp_count)]


class ScanStatus(StrEnum):
    """Policy verdict of a scan."""

    PASSED = "Passed"
    FAILED = "Failed"
    WARNED = "Warned"
    IN_PROGRESS = "InProgress"
    UNKNOWN = "Unknown"


class CountsModel(Model):
    """Base for count groups read from camelCase scanner output."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VulnerabilityCounts(CountsModel):
    """Vulnerability findings per severity."""

    info_count: Count = 0
    low_count: Count = 0
    medium_count: Count = 0
    high_count: Count = 0
    critical_count: Count = 0
    unfixed_count: Count = 0
    total_count: Count = 0

    @property
    def severity_sum(self) -> int:
        return (
            self.info_count
            + self.low_count
            + self.medium_count
            + self.high_count
            + self.critical_count
        )


class SecretCounts(CountsModel):
    """Secret findings per severity."""

    info_count: Count = 0
    low_count: Count = 0
    medium_count: Count = 0
    high_count: Count = 0
    critical_count: Count = 0
    total_count: Count = 0

    @property
    def severity_sum(self) -> int:
        return (
            self.info_count
            + self.low_count
            + self.medium_count
            + self.high_count
            + self.critical_count
        )


class ScanStatistics(CountsModel):
    """Statistics reported by IaC and directory scans."""

    info_matches: Count = 0
    low_matches: Count = 0
    medium_matches: Count = 0
    high_matches: Count = 0
    critical_matches: Count = 0
    total_matches: Count = 0
    files_found: Count = 0
    files_parsed: Count = 0
    queries_loaded: Count = 0
    queries_executed: Count = 0
    queries_execution_failed: Count = 0

    @property
    def match_sum(self) -> int:
        return (
            self.info_matches
            + self.low_matches
            + self.medium_matches
            + self.high_matches
            + self.critical_matches
        )


class ScanResult(Model):
    """Typed view of a Wiz CLI JSON report."""

    scanned_resource: str = Field(default="", description="Name of the scanned resource")
    scan_time: str = Field(default="", description="Scan time formatted for display")
    status: ScanStatus = Field(default=ScanStatus.UNKNOWN, description="Policy verdict")
    vulnerabilities: VulnerabilityCounts = Field(default_factory=VulnerabilityCounts)
    secrets: SecretCounts = Field(default_factory=SecretCounts)
    scan_statistics: ScanStatistics = Field(default_factory=ScanStatistics)
    report_url: str | None = Field(default=None, description="Link to the report")
