"""Error taxonomy for the Wiz CLI scan pipeline."""

from typing import Literal, TypeAlias

VerificationReason: TypeAlias = Literal["signature", "checksum"]


class WizScanError(Exception):
    """Base class for all pipeline errors."""


class TransportError(WizScanError):
    """Raised when a download fails on the network or on disk."""


class DownloadError(TransportError):
    """Raised when a download answers with a non-200 status."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Download of {url} failed with HTTP code: {status}")
        self.url = url
        self.status = status


class VerificationError(WizScanError):
    """Raised when the signature or the checksum of the CLI does not verify."""

    def __init__(self, reason: VerificationReason, message: str) -> None:
        super().__init__(f"{reason} verification failed: {message}")
        self.reason: VerificationReason = reason


class ValidationError(WizScanError):
    """Raised when a command line or a download URL is not allowed."""


class AuthenticationError(WizScanError):
    """Raised when ``wizcli auth`` exits with a nonzero code."""


class ScanError(WizScanError):
    """Raised when the scan did not complete successfully."""

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class ParseError(WizScanError):
    """Raised when scanner output cannot be turned into a result."""
