"""Utility helpers."""

from .validators import validate_project_options, validate_environment_name

__all__ = ["validate_project_options", "validate_environment_name"]
