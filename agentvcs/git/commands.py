"""Structured shell commands and the single place they are quoted."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

_SAFE_TOKEN_RE = re.compile(r"^[A-Za-z0-9_@%+=:,./-]+$")

NO_PROMPT_ENV = "GIT_TERMINAL_PROMPT=0 GIT_ASKPASS='false'"


def shell_quote(value: str) -> str:
    """POSIX single-quote escaping: ``'`` becomes ``'\\''``.

    Tokens made only of safe characters pass through unchanged.
    """
    if not value:
        return "''"
    if _SAFE_TOKEN_RE.match(value):
        return value
    return "'" + value.replace("'", "'\\''") + "'"


def wrap_shell(inner: str) -> str:
    """Escape a whole composed command for the outer ``sh -c`` layer."""
    return "sh -c '" + inner.replace("'", "'\\''") + "'"


class ShellCommand(BaseModel):
    """A program plus arguments, quoted only when rendered."""

    model_config = ConfigDict(frozen=True)

    program: str
    args: tuple[str, ...] = ()
    quiet: bool = False

    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def command_line(self) -> str:
        line = " ".join(shell_quote(a) for a in self.argv())
        if self.quiet:
            line += " 2>/dev/null"
        return line

    def render(self, working_dir: str) -> str:
        return f"cd {shell_quote(working_dir)} && {self.command_line()}"


class GitCommand(ShellCommand):
    """A git invocation with optional inline ``-c key=value`` overrides."""

    program: str = "git"
    config: tuple[tuple[str, str], ...] = ()

    @classmethod
    def of(
        cls,
        *args: str,
        config: dict[str, str] | None = None,
        quiet: bool = False,
    ) -> GitCommand:
        return cls(
            args=args,
            config=tuple((config or {}).items()),
            quiet=quiet,
        )

    @property
    def subcommand(self) -> str:
        return self.args[0] if self.args else ""

    def argv(self) -> list[str]:
        argv = [self.program]
        for key, value in self.config:
            argv.extend(["-c", f"{key}={value}"])
        argv.extend(self.args)
        return argv

    def render(self, working_dir: str, *, disable_prompts: bool = False) -> str:
        env = f"{NO_PROMPT_ENV} " if disable_prompts else ""
        return f"cd {shell_quote(working_dir)} && {env}{self.command_line()}"
