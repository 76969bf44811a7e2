"""Pipeline coordinating provisioning, validation, execution and parsing."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from wiz_scan_action.artifacts import ArtifactNamer
from wiz_scan_action.cleanup import remove_files
from wiz_scan_action.config import ScannerConfig
from wiz_scan_action.errors import ValidationError
from wiz_scan_action.fetcher import open_session
from wiz_scan_action.models.report import ScanOutcome, ScanReport
from wiz_scan_action.parser import check_consistency, parse_scan_result
from wiz_scan_action.provisioning import load_trusted_key, provision_cli
from wiz_scan_action.runner import CliRunner
from wiz_scan_action.validator import validate_command

log = logging.getLogger(__name__)

VALIDATION_FAILED = -1
WIZ_ENV_VARIABLE = "WIZ_ENV"


def build_environment(
    base: Mapping[str, str] | None, wiz_env: str | None
) -> dict[str, str]:
    """Copy the caller's environment, exporting ``WIZ_ENV`` when configured."""
    env = dict(os.environ if base is None else base)
    if wiz_env:
        env[WIZ_ENV_VARIABLE] = wiz_env
        log.debug("Set %s to %s", WIZ_ENV_VARIABLE, wiz_env)
    return env


@dataclass(frozen=True, kw_only=True)
class ScanPipeline:
    """Runs one Wiz scan per call of ``run``."""

    config: ScannerConfig
    workspace: Path
    artifact_dir: Path
    namer: ArtifactNamer = field(default_factory=ArtifactNamer)
    trusted_key: bytes = field(default_factory=load_trusted_key, repr=False)
    env: Mapping[str, str] | None = field(default=None, repr=False)
    os_name: str | None = None
    arch: str | None = None

    async def run(self, command: str, build_id: str) -> ScanOutcome:
        """Provision the CLI and run ``command`` with it.

        Args:
            command: Operator supplied command line, e.g. ``docker scan --image x``
            build_id: Identifier of the build, used to name the artifact

        Returns:
            The outcome; ``exit_code`` is ``VALIDATION_FAILED`` for rejected
            commands and the scanner's own exit code otherwise

        Raises:
            TransportError: If a download fails
            VerificationError: If the CLI does not verify
            AuthenticationError: If logging in fails
            ScanError: If the scan times out or its output cannot be stored

        """
        try:
            validated = validate_command(command)
        except ValidationError as exc:
            log.error("Invalid command: %s", exc)
            return ScanOutcome(exit_code=VALIDATION_FAILED, message=str(exc))

        artifact = self.namer.next_artifact(build_id)
        artifact_path = self.artifact_dir / artifact.name
        log.debug("Executing Wiz scan with artifact name: %s", artifact.name)

        async with open_session(
            self.config.connect_timeout, self.config.download_timeout
        ) as session:
            tool = await provision_cli(
                session,
                self.workspace,
                self.config.cli_url,
                self.trusted_key,
                os_name=self.os_name,
                arch=self.arch,
            )

        runner = CliRunner(
            tool=tool,
            workspace=self.workspace,
            env=build_environment(self.env, self.config.env),
            scan_timeout=self.config.scan_timeout,
        )
        try:
            try:
                await runner.authenticate(self.config.client_id, self.config.secret_key)
                execution = await runner.scan(validated, artifact_path)
            finally:
                await runner.logout()
        finally:
            remove_files(tool.path)

        if not execution.succeeded:
            return ScanOutcome(
                exit_code=execution.exit_code,
                report=ScanReport(artifact=artifact, artifact_path=artifact_path),
                message=f"Wiz scanning failed with exit code: {execution.exit_code}",
            )

        result = parse_scan_result(artifact_path)
        warnings = check_consistency(result) if result is not None else []
        for warning in warnings:
            log.warning("Inconsistent scan result: %s", warning)

        log.info("Wiz scan completed successfully")
        return ScanOutcome(
            exit_code=0,
            report=ScanReport(
                artifact=artifact,
                artifact_path=artifact_path,
                result=result,
                warnings=tuple(warnings),
            ),
        )
