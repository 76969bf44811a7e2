"""Allow-list validation of operator supplied Wiz CLI command lines."""

import logging
import re
from collections.abc import Mapping, Sequence

from wiz_scan_action.errors import ValidationError
from wiz_scan_action.models.command import ValidatedCommand

log = logging.getLogger(__name__)

ALLOWED_ROOT_COMMANDS: Sequence[str] = ("auth", "dir", "docker", "iac")

ALLOWED_SUBCOMMANDS: Mapping[str, frozenset[str]] = {
    "dir": frozenset({"scan"}),
    "docker": frozenset({"scan"}),
    "iac": frozenset({"scan"}),
}

FORBIDDEN_CHARACTERS = frozenset(";|&><`")
FORMAT_FLAGS = frozenset({"-f", "--format"})
PATH_FLAGS = frozenset({"--log"})
JSON_FORMAT_ARGS = ("-f", "json")

TOKEN_PATTERN = re.compile(r"""[^\s"']+|"([^"]*)"|'([^']*)'""")
PATH_SEPARATORS = re.compile(r"[\\/]")


def tokenize(raw_command: str) -> list[str]:
    """Split a command line on whitespace, keeping quoted spans together.

    Quote characters surrounding a span are stripped. Unbalanced quotes are
    not an error; the stray quote character is simply skipped.
    """
    tokens: list[str] = []
    for match in TOKEN_PATTERN.finditer(raw_command):
        token = match.group()
        if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
            token = token[1:-1]
        tokens.append(token)
    return tokens


def validate_command(raw_command: str) -> ValidatedCommand:
    """Validate a command line and force JSON output.

    Returns:
        The validated tokens, with ``-f json`` appended when no output format
        was requested

    Raises:
        ValidationError: If the command is empty, not allowed, or contains
            shell metacharacters or path traversal

    """
    if not raw_command or not raw_command.strip():
        raise ValidationError("No command provided")

    tokens = tokenize(raw_command)
    if not tokens:
        raise ValidationError("No valid arguments provided")

    root = tokens[0]
    if root not in ALLOWED_ROOT_COMMANDS:
        raise ValidationError(
            "Invalid command. Allowed commands are: " + ", ".join(ALLOWED_ROOT_COMMANDS)
        )

    if (allowed := ALLOWED_SUBCOMMANDS.get(root)) is not None and len(tokens) > 1:
        if tokens[1] not in allowed:
            raise ValidationError(
                f"Invalid subcommand for {root}. "
                f"Allowed subcommands are: {', '.join(sorted(allowed))}"
            )

    previous: str | None = None
    for token in tokens:
        validate_argument(token, previous)
        previous = token

    if not has_format_flag(tokens):
        tokens.extend(JSON_FORMAT_ARGS)

    return ValidatedCommand(tokens=tuple(tokens))


def validate_argument(token: str, previous: str | None = None) -> None:
    """Validate a single token.

    Args:
        token: The token to check
        previous: The token before it, used to recognise values of
            space-separated path flags such as ``--log out.txt``

    """
    if not token.strip():
        raise ValidationError("Empty argument provided")

    if FORBIDDEN_CHARACTERS.intersection(token):
        raise ValidationError(f"Invalid characters in argument: {token}")

    if token.startswith("-"):
        name, separator, value = token.partition("=")
        if separator and name in PATH_FLAGS:
            validate_file_path(value)
        return

    if previous in PATH_FLAGS or "/" in token or "\\" in token:
        validate_file_path(token)


def validate_file_path(path: str) -> None:
    if not path.strip():
        raise ValidationError("Empty file path provided")
    if ".." in PATH_SEPARATORS.split(path):
        raise ValidationError(f"Directory traversal not allowed: {path}")
    if "\x00" in path:
        raise ValidationError(f"Invalid file path: {path}")


def has_format_flag(tokens: Sequence[str]) -> bool:
    """Check whether an output format was requested, warning if it is not JSON.

    Raises:
        ValidationError: If a format flag has no value

    """
    for index, token in enumerate(tokens):
        name, separator, value = token.partition("=")
        if name not in FORMAT_FLAGS:
            continue
        if not separator:
            value = tokens[index + 1] if index + 1 < len(tokens) else ""
        if not value or value.startswith("-"):
            raise ValidationError(f"Missing value for output format flag: {name}")
        if "json" not in value.split(","):
            log.warning(
                "Output format %r is not JSON; scan results may not be parsed", value
            )
        return True
    return False
