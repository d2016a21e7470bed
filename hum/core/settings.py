"""
Settings and template storage for hum.

Layout under the config directory (default ~/.hum):
    settings.json          AppSettings, camelCase keys
    templates/<name>.json  saved ProjectConfig documents
    keys/                  generated SSH keys
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
import aiofiles.os

from .errors import TemplateNotFoundError
from .logger import HumLogger
from ..models.project import DeploymentConfig, GitConfig, ProjectConfig
from ..models.settings import AppSettings

# One lock per file; guards read-modify-write within this process only.
_file_locks: Dict[str, asyncio.Lock] = {}


def file_lock(path: Path) -> asyncio.Lock:
    """Advisory in-process lock for a file path."""
    key = str(Path(path).resolve())
    lock = _file_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _file_locks[key] = lock
    return lock


class ConfigurationService:
    """Loads and saves AppSettings and named project templates."""

    def __init__(self, config_dir: Optional[Path] = None, logger: Optional[HumLogger] = None):
        if config_dir is None:
            from ..config import get_config
            config_dir = get_config().config_dir
        self.config_dir = Path(config_dir).expanduser()
        self.logger = logger or HumLogger("Settings")
        self.config_dir.mkdir(parents=True, exist_ok=True)

    @property
    def settings_path(self) -> Path:
        return self.config_dir / "settings.json"

    @property
    def templates_dir(self) -> Path:
        return self.config_dir / "templates"

    @property
    def keys_dir(self) -> Path:
        return self.config_dir / "keys"

    @staticmethod
    def default_settings() -> AppSettings:
        return AppSettings(
            default_git_config=GitConfig(
                default_branch="main",
                initialize_with_readme=True,
                ignore_template="dotnet",
            ),
            default_deployment_config=DeploymentConfig(),
        )

    async def load_settings(self) -> AppSettings:
        """
        Load settings.json.

        A missing file is created with defaults. An unreadable file is
        reported and defaults are returned (the file is left untouched).
        """
        async with file_lock(self.settings_path):
            return await self._load_settings_locked()

    async def _load_settings_locked(self) -> AppSettings:
        if not await aiofiles.os.path.exists(self.settings_path):
            settings = self.default_settings()
            await self._write_json(self.settings_path, settings.to_dict(), mode=0o600)
            return settings

        try:
            async with aiofiles.open(self.settings_path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
            return AppSettings.from_dict(data or {})
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            self.logger.error(f"Error loading settings: {e}")
            return self.default_settings()

    async def update_settings(self, **changes) -> AppSettings:
        """Read-modify-write selected AppSettings fields under the file lock."""
        async with file_lock(self.settings_path):
            settings = await self._load_settings_locked()
            for key, value in changes.items():
                if not hasattr(settings, key):
                    raise AttributeError(f"Unknown setting: {key}")
                setattr(settings, key, value)
            await self._write_json(self.settings_path, settings.to_dict(), mode=0o600)
        return settings

    async def save_project_template(self, name: str, config: ProjectConfig) -> Path:
        await aiofiles.os.makedirs(self.templates_dir, exist_ok=True)
        path = self.templates_dir / f"{name}.json"
        async with file_lock(path):
            await self._write_json(path, config.to_dict())
        self.logger.debug(f"Saved template {name} to {path}")
        return path

    async def load_project_template(self, name: str) -> ProjectConfig:
        """
        Load a saved template.

        Raises:
            TemplateNotFoundError: If no template with that name exists
        """
        path = self.templates_dir / f"{name}.json"
        if not await aiofiles.os.path.exists(path):
            raise TemplateNotFoundError(name)
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            data = json.loads(await f.read())
        return ProjectConfig.from_dict(data)

    async def list_project_templates(self) -> List[str]:
        if not await aiofiles.os.path.exists(self.templates_dir):
            return []
        return sorted(p.stem for p in self.templates_dir.glob("*.json"))

    async def create_default_project_config(
        self,
        name: str,
        description: str,
        template_type: str,
    ) -> ProjectConfig:
        """ProjectConfig pre-filled from the saved git/deployment defaults."""
        settings = await self.load_settings()
        return ProjectConfig(
            name=name,
            description=description,
            template_type=template_type,
            output_path=str(Path.cwd() / name),
            source_control_provider="GitHub",
            cicd_provider="GitHub",
            infrastructure_provider="Ansible",
            git_config=settings.default_git_config,
            deployment_config=settings.default_deployment_config,
        )

    async def _write_json(self, path: Path, data: dict, mode: Optional[int] = None) -> None:
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2))
        if mode is not None:
            os.chmod(path, mode)
