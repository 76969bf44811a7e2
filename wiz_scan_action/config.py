"""Configuration for the Wiz CLI scan pipeline."""

import re
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator

WIZ_DOWNLOADS_BASE = "https://downloads.wiz.io/wizcli/"
CLI_URL_PATTERN = re.compile(r"https://downloads\.wiz\.io/wizcli/([^/]+)/([^/]+)")


class ScannerConfig(BaseModel):
    """Credentials, download location and timeouts for one scan."""

    client_id: str
    secret_key: SecretStr
    cli_url: str
    env: str | None = None
    # Operator pinned OpenPGP key; the bundled key is used when unset
    public_key_path: Path | None = None
    connect_timeout: float = Field(default=10, gt=0)
    download_timeout: float = Field(default=60, gt=0)
    # None waits for the scanner indefinitely
    scan_timeout: float | None = Field(default=3600, gt=0)

    @field_validator("client_id")
    @classmethod
    def _client_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Wiz Client ID is required")
        return value.strip()

    @field_validator("secret_key")
    @classmethod
    def _secret_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("Wiz Secret Key is required")
        return value

    @field_validator("cli_url")
    @classmethod
    def _cli_url_matches_pattern(cls, value: str) -> str:
        value = value.strip()
        if not CLI_URL_PATTERN.fullmatch(value):
            raise ValueError(
                "Invalid Wiz CLI URL format. Expected: "
                f"{WIZ_DOWNLOADS_BASE}{{version}}/{{binary_name}}"
            )
        return value

    @field_validator("env")
    @classmethod
    def _blank_env_is_unset(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()
