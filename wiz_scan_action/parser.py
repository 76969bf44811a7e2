"""Parsing of Wiz CLI JSON output into ``ScanResult``."""

import json
import logging
import re
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from wiz_scan_action.errors import ParseError
from wiz_scan_action.models.result import (
    ScanResult,
    ScanStatistics,
    ScanStatus,
    SecretCounts,
    VulnerabilityCounts,
)

log = logging.getLogger(__name__)

ISO_DATE_TIME = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d{1,9})?)?(?:Z|[+-]\d{2}:\d{2})?"
)

VERDICT_TO_STATUS: Mapping[str, ScanStatus] = {
    "PASSED_BY_POLICY": ScanStatus.PASSED,
    "FAILED_BY_POLICY": ScanStatus.FAILED,
    "WARN_BY_POLICY": ScanStatus.WARNED,
    "IN_PROGRESS": ScanStatus.IN_PROGRESS,
}


def lookup(document: Any, path: str) -> Any:
    """Follow a dotted path through nested objects.

    Returns None as soon as a key is missing or an intermediate value is not
    an object.
    """
    value = document
    for key in path.split("."):
        if not isinstance(value, Mapping) or key not in value:
            return None
        value = value[key]
    return value


def lookup_string(document: Any, path: str) -> str:
    value = lookup(document, path)
    if value is None or isinstance(value, (Mapping, list)):
        return ""
    return str(value)


def lookup_object(document: Any, path: str) -> Mapping[str, Any]:
    value = lookup(document, path)
    return value if isinstance(value, Mapping) else {}


def format_scan_time(value: str) -> str:
    """Reformat an ISO-8601 timestamp as e.g. ``January 15, 2024 at 10:30 AM``.

    Only extended date-time values such as ``2024-01-15T10:30:00Z`` are
    reformatted; anything else is returned unchanged.
    """
    if not value:
        return ""
    if not ISO_DATE_TIME.fullmatch(value):
        log.debug("Could not parse scan time %r", value)
        return value
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        log.debug("Could not parse scan time %r", value)
        return value

    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return (
        f"{parsed:%B} {parsed.day}, {parsed.year} "
        f"at {hour}:{parsed.minute:02d} {meridiem}"
    )


def parse_status(verdict: str) -> ScanStatus:
    return VERDICT_TO_STATUS.get(verdict, ScanStatus.UNKNOWN)


def parse_document(document: Any) -> ScanResult:
    """Build a ``ScanResult`` from a decoded JSON document.

    Raises:
        ParseError: If the document is not a JSON object

    """
    if not isinstance(document, Mapping):
        raise ParseError(f"Expected a JSON object, got {type(document).__name__}")

    report_url = lookup_string(document, "reportUrl")
    return ScanResult(
        scanned_resource=lookup_string(document, "scanOriginResource.name"),
        scan_time=format_scan_time(lookup_string(document, "createdAt")),
        status=parse_status(lookup_string(document, "status.verdict")),
        vulnerabilities=VulnerabilityCounts.model_validate(
            lookup_object(document, "result.analytics.vulnerabilities")
        ),
        secrets=SecretCounts.model_validate(
            lookup_object(document, "result.analytics.secrets")
        ),
        scan_statistics=ScanStatistics.model_validate(
            lookup_object(document, "result.scanStatistics")
        ),
        report_url=report_url or None,
    )


def parse_scan_result(path: Path) -> ScanResult | None:
    """Parse a captured output file, returning None if it cannot be parsed."""
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        return parse_document(document)
    except (OSError, ValueError, ParseError) as exc:
        log.error("Failed to parse scan results from %s: %s", path, exc)
        return None


def check_consistency(result: ScanResult) -> list[str]:
    """Return advisory warnings about internally inconsistent counts."""
    warnings: list[str] = []

    vulnerabilities = result.vulnerabilities
    if vulnerabilities.total_count < vulnerabilities.severity_sum:
        warnings.append(
            f"Vulnerability total ({vulnerabilities.total_count}) is lower than "
            f"the sum of severities ({vulnerabilities.severity_sum})"
        )

    secrets = result.secrets
    if secrets.total_count < secrets.severity_sum:
        warnings.append(
            f"Secret total ({secrets.total_count}) is lower than "
            f"the sum of severities ({secrets.severity_sum})"
        )

    stats = result.scan_statistics
    if stats.total_matches < stats.match_sum:
        warnings.append(
            f"Total matches ({stats.total_matches}) is lower than "
            f"the sum of severity matches ({stats.match_sum})"
        )
    if stats.files_parsed > stats.files_found:
        warnings.append(
            f"Files parsed ({stats.files_parsed}) exceeds "
            f"files found ({stats.files_found})"
        )
    if stats.queries_executed > stats.queries_loaded:
        warnings.append(
            f"Queries executed ({stats.queries_executed}) exceeds "
            f"queries loaded ({stats.queries_loaded})"
        )

    return warnings
