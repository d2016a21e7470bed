"""
Error types raised by hum.

Fatal errors propagate unchanged to the CLI, which prints them and exits
with status 1. Soft-fail steps catch them where they occur and log a warning.
"""

from typing import List, Optional, Sequence


class HumError(Exception):
    """Base class for all hum errors."""


class ConfigurationError(HumError):
    """Invalid or incomplete project/settings configuration."""


class ProviderResolutionError(HumError):
    """No provider in a family matched the requested kind."""

    def __init__(
        self,
        family: str,
        requested: str,
        providers: Sequence[str],
        details: Optional[Sequence[str]] = None,
    ):
        self.family = family
        self.requested = requested
        self.providers: List[str] = list(providers)
        self.details: List[str] = list(details) if details is not None else [f"- {name}" for name in self.providers]

        lines = [f"No {family} provider found for '{requested}'."]
        if self.details:
            lines.append("Available providers:")
            lines.extend(self.details)
        else:
            lines.append("No providers are registered.")
        self.summary = lines[0]
        self.listing = lines[1:]
        super().__init__("\n".join(lines))


class ToolInvocationError(HumError):
    """External tool exited non-zero (or could not be started)."""

    def __init__(self, command: str, return_code: int, stderr: str):
        self.command = command
        self.return_code = return_code
        self.stderr = stderr
        message = stderr.strip() or f"'{command}' exited with code {return_code}"
        super().__init__(message)


class ToolTimeoutError(HumError):
    """External tool exceeded its timeout and was killed."""

    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"'{command}' timed out after {timeout} seconds")


class KeyConversionError(HumError):
    """Private key could not be converted to PEM."""


class TemplateNotFoundError(HumError):
    """A named project template does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Template '{name}' not found")


class SshError(HumError):
    """SSH session could not be established or a remote command failed."""


class GitHubApiError(HumError):
    """GitHub REST API returned an error status."""

    def __init__(self, action: str, status_code: int, detail: str = ""):
        self.action = action
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"GitHub API {action} failed ({status_code}): {detail}".rstrip(": "))
