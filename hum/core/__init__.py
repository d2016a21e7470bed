"""Core utilities: process execution, logging, errors, settings, prompts."""

from .errors import (
    HumError,
    ConfigurationError,
    ProviderResolutionError,
    ToolInvocationError,
    ToolTimeoutError,
    KeyConversionError,
    TemplateNotFoundError,
    SshError,
    GitHubApiError,
)
from .executor import CommandExecutor, CommandResult
from .file_manager import FileManager
from .logger import HumLogger, console, get_logger, setup_logging
from .prompts import Prompter, read_masked
from .security import InputValidator, SecretsMasker, SecurityError, mask_secrets
from .settings import ConfigurationService

__all__ = [
    "HumError",
    "ConfigurationError",
    "ProviderResolutionError",
    "ToolInvocationError",
    "ToolTimeoutError",
    "KeyConversionError",
    "TemplateNotFoundError",
    "SshError",
    "GitHubApiError",
    "CommandExecutor",
    "CommandResult",
    "FileManager",
    "HumLogger",
    "console",
    "get_logger",
    "setup_logging",
    "Prompter",
    "read_masked",
    "InputValidator",
    "SecretsMasker",
    "SecurityError",
    "mask_secrets",
    "ConfigurationService",
]
