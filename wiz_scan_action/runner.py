"""Execution of the verified Wiz CLI: authentication, scan and logout."""

import asyncio
import logging
import re
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from pydantic import SecretStr

from wiz_scan_action.cleanup import remove_files
from wiz_scan_action.errors import AuthenticationError, ScanError
from wiz_scan_action.models.command import ValidatedCommand
from wiz_scan_action.models.execution import ScanExecution
from wiz_scan_action.models.tool import ToolDescriptor

log = logging.getLogger(__name__)

OUTPUT_FILENAME = "wizcli_output"
ERROR_FILENAME = "wizcli_err_output"
AUTH_ERROR_FILENAME = "auth_error.txt"
MASK = "****"
STDERR_TAIL_LINES = 50

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
ERROR_PREFIX = "ERROR:"


def mask_arguments(argv: Sequence[str], secrets: Sequence[str]) -> str:
    """Render an argument vector for logging with secret values masked."""
    hidden = {secret for secret in secrets if secret}
    return " ".join(MASK if arg in hidden else arg for arg in argv)


def is_banner_line(line: str) -> bool:
    """Banner lines are drawn from box and block characters, not words."""
    return not any(char.isalnum() for char in line)


def extract_error_message(stderr: str) -> str | None:
    """Return the first ``ERROR:`` line of CLI output, ignoring the banner."""
    for raw_line in stderr.splitlines():
        line = ANSI_ESCAPE.sub("", raw_line).strip()
        if not line or is_banner_line(line):
            continue
        if line.startswith(ERROR_PREFIX):
            return line
    return None


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return ""


@dataclass(frozen=True, kw_only=True)
class CliRunner:
    """Runs commands of one verified Wiz CLI in a workspace."""

    tool: ToolDescriptor
    workspace: Path
    env: Mapping[str, str] = field(default_factory=dict, repr=False)
    scan_timeout: float | None = None

    async def authenticate(self, client_id: str, secret_key: SecretStr) -> None:
        """Log in to the Wiz API.

        Raises:
            AuthenticationError: If the CLI exits with a nonzero code or cannot
                be started

        """
        log.info("Authenticating with Wiz API...")
        secret = secret_key.get_secret_value()
        argv = [str(self.tool.path), "auth", "--id", client_id, "--secret", secret]
        log.debug("Executing command: %s", mask_arguments(argv, [client_id, secret]))

        error_path = self.workspace / AUTH_ERROR_FILENAME
        try:
            try:
                with error_path.open("wb") as stderr:
                    exit_code = await self._run(
                        argv, stdout=asyncio.subprocess.DEVNULL, stderr=stderr
                    )
            except (OSError, ScanError) as exc:
                raise AuthenticationError(
                    f"Wiz CLI authentication failed: {exc}"
                ) from exc

            if exit_code != 0:
                log.error("Authentication failed with exit code: %d", exit_code)
                message = extract_error_message(read_text(error_path)) or (
                    f"Authentication failed with exit code: {exit_code}"
                )
                raise AuthenticationError(f"Wiz CLI authentication failed: {message}")
        finally:
            remove_files(error_path)

        log.info("Authenticated with Wiz API")

    async def scan(self, command: ValidatedCommand, artifact_path: Path) -> ScanExecution:
        """Run a validated scan command and copy its output to ``artifact_path``.

        The exit code is returned as is; the artifact is only written when the
        scan exits with zero. Output captures are removed before returning.

        Raises:
            ScanError: If the scan exceeds ``scan_timeout``, the CLI cannot be
                started or its output cannot be stored

        """
        log.info("Executing Wiz scan...")
        argv = command.argv(self.tool.path)
        log.info("Executing command: %s", mask_arguments(argv, []))

        stdout_path = self.workspace / OUTPUT_FILENAME
        stderr_path = self.workspace / ERROR_FILENAME
        copied_to: Path | None = None
        try:
            try:
                with (
                    stdout_path.open("wb") as stdout,
                    stderr_path.open("wb") as stderr,
                ):
                    exit_code = await self._run(
                        argv, stdout=stdout, stderr=stderr, timeout=self.scan_timeout
                    )
            except OSError as exc:
                raise ScanError(f"Could not capture Wiz CLI output: {exc}") from exc

            if exit_code == 0:
                try:
                    artifact_path.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copyfile(stdout_path, artifact_path)
                except OSError as exc:
                    raise ScanError(
                        f"Could not write scan artifact {artifact_path}: {exc}"
                    ) from exc
                copied_to = artifact_path
                log.info("Scan output written to %s", artifact_path)
            else:
                self._log_scan_failure(exit_code, stderr_path)
        finally:
            remove_files(stdout_path, stderr_path)

        return ScanExecution(
            exit_code=exit_code,
            stdout_path=stdout_path,
            stderr_path=stderr_path,
            artifact_path=copied_to,
        )

    async def logout(self) -> int | None:
        """Log out of the Wiz API; failures are logged and never raised."""
        argv = [str(self.tool.path), "auth", "--logout"]
        try:
            exit_code = await self._run(
                argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except ScanError as exc:
            log.warning("Failed to logout from Wiz CLI: %s", exc)
            return None

        if exit_code == 0:
            log.info("Successfully logged out from Wiz CLI")
        else:
            log.warning("Failed to logout from Wiz CLI. Exit code: %d", exit_code)
        return exit_code

    async def _run(
        self,
        argv: Sequence[str],
        *,
        stdout: IO[bytes] | int,
        stderr: IO[bytes] | int,
        timeout: float | None = None,
    ) -> int:
        """Run a child process to completion, killing it on timeout or cancellation."""
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=self.workspace,
                env=dict(self.env) if self.env else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
            )
        except OSError as exc:
            raise ScanError(f"Could not start Wiz CLI: {exc}") from exc
        try:
            return await asyncio.wait_for(process.wait(), timeout=timeout)
        except TimeoutError as exc:
            await _kill(process)
            raise ScanError(
                f"Wiz CLI did not finish within {timeout} seconds"
            ) from exc
        except asyncio.CancelledError:
            await _kill(process)
            raise

    @staticmethod
    def _log_scan_failure(exit_code: int, stderr_path: Path) -> None:
        log.error("Scan failed with exit code: %d", exit_code)
        lines = read_text(stderr_path).splitlines()
        if lines:
            log.error(
                "Scan failed with error output:\n%s",
                "\n".join(lines[-STDERR_TAIL_LINES:]),
            )


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()
