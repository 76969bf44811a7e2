"""Validated command line model."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class ValidatedCommand:
    """Tokens that passed the allow-list grammar, ready to be executed.

    Instances are only built by ``validate_command``; the tokens are passed to
    the child process as discrete arguments and are never joined into a shell
    string.
    """

    tokens: tuple[str, ...]

    @property
    def root(self) -> str:
        return self.tokens[0]

    @property
    def subcommand(self) -> str | None:
        return self.tokens[1] if len(self.tokens) > 1 else None

    def argv(self, executable: Path) -> Sequence[str]:
        """Return the full argument vector for the given executable."""
        return (str(executable), *self.tokens)
