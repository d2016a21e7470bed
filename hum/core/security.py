"""
Security utilities for hum.

Provides:
- Validation of names and hosts that end up as tool arguments
- Secrets masking in logs
"""

import re
from typing import Iterable, Optional


class SecurityError(Exception):
    """Raised when user input fails validation."""
    pass


class InputValidator:
    """
    Validates user inputs before they reach external tools.
    """

    # GitHub repository names: letters, digits, '.', '-', '_'
    PROJECT_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{1,100}$')

    HOSTNAME_PATTERN = re.compile(
        r'^(?=.{1,253}$)[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$'
    )

    # POSIX user names
    USER_PATTERN = re.compile(r'^[a-z_][a-z0-9_.-]*\$?$', re.IGNORECASE)

    @staticmethod
    def validate_project_name(name: str) -> bool:
        """
        Validate a project name.

        The name is used as a directory name, a repository name and an
        Ansible variable value.

        Raises:
            SecurityError: If the name is empty or contains unsupported characters
        """
        if not name or not name.strip():
            raise SecurityError("Project name must not be empty")
        if name in (".", "..") or not InputValidator.PROJECT_NAME_PATTERN.match(name):
            raise SecurityError(
                f"Invalid project name: {name!r} (allowed: letters, digits, '.', '-', '_')"
            )
        return True

    @staticmethod
    def validate_hostname(host: str) -> bool:
        """
        Validate a hostname or IPv4 address.

        Raises:
            SecurityError: If host is not a valid DNS name
        """
        if not host or not InputValidator.HOSTNAME_PATTERN.match(host):
            raise SecurityError(f"Invalid host name: {host!r}")
        return True

    @staticmethod
    def validate_user(user: str) -> bool:
        if not user or not InputValidator.USER_PATTERN.match(user):
            raise SecurityError(f"Invalid user name: {user!r}")
        return True


class SecretsMasker:
    """
    Masks secrets in logs and output to prevent exposure.
    """

    SECRET_PATTERNS = [
        (re.compile(r'(ghp_[a-zA-Z0-9]{36})'), 'GITHUB_TOKEN'),
        (re.compile(r'(gho_[a-zA-Z0-9]{36})'), 'GITHUB_OAUTH_TOKEN'),
        (re.compile(r'(github_pat_[a-zA-Z0-9_]{22,})'), 'GITHUB_PAT'),
    ]

    @staticmethod
    def mask_secrets(text: str, values: Iterable[str] = ()) -> str:
        """
        Mask secrets in text.

        Args:
            text: Text that may contain secrets
            values: Literal secret values (passphrases, tokens) to hide

        Returns:
            Text with secrets masked
        """
        masked = text

        for value in values:
            if value:
                masked = masked.replace(value, '***')

        for pattern, name in SecretsMasker.SECRET_PATTERNS:
            masked = pattern.sub(f'***{name}***', masked)

        masked = re.sub(
            r'(password|passphrase|token|secret)([\s]*[=:][\s]*)[^\s]+',
            r'\1\2***REDACTED***',
            masked,
            flags=re.IGNORECASE
        )

        return masked

    @staticmethod
    def mask_token(token: Optional[str]) -> str:
        """Short display form of a token: first four characters then asterisks."""
        if not token:
            return "(not set)"
        if len(token) <= 8:
            return "*" * len(token)
        return f"{token[:4]}{'*' * (len(token) - 4)}"


def mask_secrets(text: str, values: Iterable[str] = ()) -> str:
    """Mask secrets in text."""
    return SecretsMasker.mask_secrets(text, values)
