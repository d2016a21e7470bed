"""Input validation for CLI options."""

import re
from pathlib import Path
from typing import Optional

from ..core.security import InputValidator, SecurityError

ENVIRONMENT_NAME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9_-]*$')


def validate_project_options(
    name: str,
    output: Optional[str] = None,
    host: Optional[str] = None,
) -> tuple[bool, Optional[str]]:
    """
    Validate the options that shape a new project.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        InputValidator.validate_project_name(name)
        if host:
            InputValidator.validate_hostname(host)
    except SecurityError as e:
        return False, str(e)

    if output:
        path = Path(output).expanduser()
        if path.exists() and not path.is_dir():
            return False, f"Output path is not a directory: {path}"
        if path.is_dir() and any(path.iterdir()):
            return False, f"Output directory is not empty: {path}"

    return True, None


def validate_environment_name(name: str) -> tuple[bool, Optional[str]]:
    """Environment names become Ansible group names."""
    if not ENVIRONMENT_NAME_PATTERN.match(name or ""):
        return False, f"Invalid environment name: {name!r}"
    return True, None
