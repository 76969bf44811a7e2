"""CLI entry point for the Wiz scan build step."""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError as ConfigValidationError

from wiz_scan_action.config import ScannerConfig
from wiz_scan_action.errors import ScanError, WizScanError
from wiz_scan_action.models.report import ScanOutcome, ScanReport
from wiz_scan_action.models.result import ScanStatus
from wiz_scan_action.pipeline import VALIDATION_FAILED, ScanPipeline
from wiz_scan_action.provisioning import load_trusted_key

CONFIG_ENV_VARIABLE = "WIZ_SCAN_CONFIG"
INVALID_COMMAND_EXIT_CODE = 2
FAILURE_EXIT_CODE = 1

STATUS_SYMBOLS = {
    ScanStatus.PASSED: "✅",
    ScanStatus.FAILED: "❌",
    ScanStatus.WARNED: "⚠️",
    ScanStatus.IN_PROGRESS: "⏳",
    ScanStatus.UNKNOWN: "?",
}


def log_report_summary(log: logging.Logger, report: ScanReport) -> None:
    """Log a formatted summary of a scan report."""
    log.info("=" * 80)
    log.info("%s Results:", report.display_name)
    log.info("=" * 80)

    result = report.result
    if result is None:
        log.info("No parsable results; raw output kept at %s", report.artifact_path)
        return

    symbol = STATUS_SYMBOLS.get(result.status, "?")
    log.info("%s %s: %s", symbol, result.scanned_resource or "-", result.status)
    if result.scan_time:
        log.info("  Scanned: %s", result.scan_time)

    vulns = result.vulnerabilities
    log.info(
        "  Vulnerabilities: critical=%d high=%d medium=%d low=%d info=%d "
        "unfixed=%d total=%d",
        vulns.critical_count,
        vulns.high_count,
        vulns.medium_count,
        vulns.low_count,
        vulns.info_count,
        vulns.unfixed_count,
        vulns.total_count,
    )
    log.info("  Secrets: total=%d", result.secrets.total_count)
    if result.report_url:
        log.info("  Report URL: %s", result.report_url)
    for warning in report.warnings:
        log.info("  Warning: %s", warning)


def format_output(outcome: ScanOutcome) -> dict[str, Any]:
    """Format a pipeline outcome for JSON output."""
    output: dict[str, Any] = {
        "exit_code": outcome.exit_code,
        "message": outcome.message,
        "artifact": None,
        "result": None,
        "warnings": [],
    }
    if (report := outcome.report) is not None:
        output["artifact"] = {
            "name": report.artifact.name,
            "path": str(report.artifact_path),
            "display_name": report.display_name,
            "url_name": report.url_name,
        }
        output["warnings"] = list(report.warnings)
        if report.result is not None:
            output["result"] = report.result.model_dump(mode="json")
    return output


async def run(
    config_json: str,
    command: str,
    workspace: Path,
    artifact_dir: Path,
    build_id: str,
) -> int:
    """Run one scan and return the process exit code."""
    log = logging.getLogger("wiz_scan_action")

    try:
        config = ScannerConfig.model_validate_json(config_json)
    except ConfigValidationError as exc:
        log.error("Invalid configuration: %s", exc)
        return FAILURE_EXIT_CODE

    try:
        workspace.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        log.error("Cannot create workspace %s: %s", workspace, exc)
        return FAILURE_EXIT_CODE

    try:
        pipeline = ScanPipeline(
            config=config,
            workspace=workspace,
            artifact_dir=artifact_dir,
            trusted_key=load_trusted_key(config.public_key_path),
        )
        outcome = await pipeline.run(command, build_id)
    except WizScanError as exc:
        log.error("Wiz scan failed: %s", exc)
        return FAILURE_EXIT_CODE

    if outcome.report is not None:
        log_report_summary(log, outcome.report)
    print(json.dumps(format_output(outcome), indent=2))

    if outcome.exit_code == VALIDATION_FAILED:
        return INVALID_COMMAND_EXIT_CODE

    try:
        outcome.raise_for_status()
    except ScanError as exc:
        log.error("%s", exc)
        return exc.exit_code or FAILURE_EXIT_CODE
    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Download, verify and run the Wiz CLI as a build step"
    )
    parser.add_argument(
        "--config",
        default=os.environ.get(CONFIG_ENV_VARIABLE),
        help=f"JSON scanner configuration (default: ${CONFIG_ENV_VARIABLE})",
    )
    parser.add_argument(
        "--command",
        required=True,
        help='Wiz CLI command line, e.g. "docker scan --image alpine:latest"',
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=Path.cwd(),
        help="Directory the CLI is downloaded to and run in",
    )
    parser.add_argument(
        "--artifact-dir",
        type=Path,
        default=None,
        help="Directory receiving the JSON result artifact (default: workspace)",
    )
    parser.add_argument(
        "--build-id",
        default=os.environ.get("BUILD_ID", "local"),
        help="Build identifier used to name artifacts",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    if not args.config:
        parser.error(f"--config or ${CONFIG_ENV_VARIABLE} is required")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            config_json=args.config,
            command=args.command,
            workspace=args.workspace,
            artifact_dir=args.artifact_dir or args.workspace,
            build_id=args.build_id,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
