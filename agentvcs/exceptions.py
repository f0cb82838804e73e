"""Shared exception types for agentvcs."""


class AgentVcsError(Exception):
    """Base exception for all agentvcs errors."""


class ConfigError(AgentVcsError):
    """Configuration is invalid or missing."""


class StorageError(AgentVcsError):
    """Agent registry could not be read or written."""


class NotFoundError(AgentVcsError):
    """Agent, container or file does not exist."""


class ValidationError(AgentVcsError):
    """Bad input, or a git failure classified for the caller."""


class AuthenticationError(ValidationError):
    """Remote rejected the operation for lack of credentials."""


class ChannelError(AgentVcsError):
    """The remote command channel could not run the command."""


class RemoteCommandError(AgentVcsError):
    """A remote command exited non-zero while its exit code was checked."""

    def __init__(self, message: str, *, exit_code: int, output: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output
