"""Tests for scanner configuration."""

import pytest
from pydantic import ValidationError

from wiz_scan_action.config import ScannerConfig

CLI_URL = "https://downloads.wiz.io/wizcli/0.50.0/wizcli-linux-amd64"


def test_valid_config() -> None:
    """A complete configuration validates and hides the secret."""
    config = ScannerConfig(client_id=" id ", secret_key="s3cr3t", cli_url=CLI_URL)

    assert config.client_id == "id"
    assert config.secret_key.get_secret_value() == "s3cr3t"
    assert "s3cr3t" not in repr(config)
    assert config.env is None
    assert config.connect_timeout == 10
    assert config.download_timeout == 60


@pytest.mark.parametrize(
    "url",
    [
        "http://downloads.wiz.io/wizcli/latest/wizcli-linux-amd64",
        "https://downloads.evil.io/wizcli/latest/wizcli-linux-amd64",
        "https://downloads.wiz.io/wizcli/wizcli-linux-amd64",
        "https://downloads.wiz.io/wizcli/latest/nested/wizcli",
        "https://downloads.wiz.io.evil.com/wizcli/latest/wizcli",
    ],
)
def test_rejects_unexpected_urls(url: str) -> None:
    """Only the official download location is accepted."""
    with pytest.raises(ValidationError, match="Invalid Wiz CLI URL format"):
        ScannerConfig(client_id="id", secret_key="secret", cli_url=url)


@pytest.mark.parametrize(
    ("client_id", "secret_key", "message"),
    [
        ("", "secret", "Wiz Client ID is required"),
        ("   ", "secret", "Wiz Client ID is required"),
        ("id", "", "Wiz Secret Key is required"),
        ("id", "  ", "Wiz Secret Key is required"),
    ],
)
def test_rejects_blank_credentials(client_id: str, secret_key: str, message: str) -> None:
    """Credentials must not be blank."""
    with pytest.raises(ValidationError, match=message):
        ScannerConfig(client_id=client_id, secret_key=secret_key, cli_url=CLI_URL)


def test_blank_env_is_unset() -> None:
    """A blank environment override is ignored."""
    config = ScannerConfig(
        client_id="id", secret_key="secret", cli_url=CLI_URL, env="  "
    )

    assert config.env is None


def test_loads_from_json() -> None:
    """Configuration can be read from a JSON document."""
    config = ScannerConfig.model_validate_json(
        '{"client_id": "id", "secret_key": "secret", "cli_url": "'
        + CLI_URL
        + '", "env": "fedramp", "scan_timeout": null}'
    )

    assert config.env == "fedramp"
    assert config.scan_timeout is None
