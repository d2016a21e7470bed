"""
File system helpers for hum.
Async file I/O via aiofiles and rendering of the packaged templates.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiofiles
import aiofiles.os
from jinja2 import Environment, PackageLoader, TemplateNotFound

from .logger import HumLogger

PathLike = Union[str, Path]


def substitute_placeholders(text: str, values: Dict[str, str]) -> str:
    """Replace literal ``{{Key}}`` placeholders, leaving other Jinja syntax alone.

    Playbooks and workflows contain their own ``{{ ... }}`` expressions, so
    they are not rendered through Jinja.
    """
    for key, value in values.items():
        text = text.replace("{{" + key + "}}", value)
    return text


class FileManager:
    """Reads and writes project files and renders packaged assets."""

    def __init__(self, base_dir: Optional[Path] = None, logger: Optional[HumLogger] = None):
        self.base_dir = base_dir or Path.cwd()
        self.logger = logger or HumLogger("FileManager")

        self.jinja_env = Environment(
            loader=PackageLoader("hum", "assets"),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def _resolve_path(self, path: PathLike) -> Path:
        path = Path(path)
        if path.is_absolute():
            return path
        return self.base_dir / path

    async def read_file(self, path: PathLike) -> str:
        """Read file contents asynchronously."""
        async with aiofiles.open(self._resolve_path(path), "r", encoding="utf-8") as f:
            return await f.read()

    async def write_file(
        self,
        path: PathLike,
        content: str,
        create_dirs: bool = True,
        mode: Optional[int] = None,
    ) -> Path:
        """Write content to a file asynchronously, optionally chmod'ing it."""
        full_path = self._resolve_path(path)
        if create_dirs:
            await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
        async with aiofiles.open(full_path, "w", encoding="utf-8") as f:
            await f.write(content)
        if mode is not None:
            os.chmod(full_path, mode)
        self.logger.debug(f"Written to {full_path}")
        return full_path

    async def exists(self, path: PathLike) -> bool:
        return await aiofiles.os.path.exists(self._resolve_path(path))

    async def makedirs(self, path: PathLike) -> Path:
        full_path = self._resolve_path(path)
        await aiofiles.os.makedirs(full_path, exist_ok=True)
        return full_path

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a packaged Jinja2 template."""
        template = self.jinja_env.get_template(template_name)
        return template.render(**context)

    def load_asset(self, asset_name: str) -> str:
        """Return the raw text of a packaged asset.

        Raises:
            FileNotFoundError: If the asset is not shipped with the package
        """
        loader = self.jinja_env.loader
        try:
            source, _, _ = loader.get_source(self.jinja_env, asset_name)
        except TemplateNotFound as e:
            raise FileNotFoundError(f"Template asset not found: {asset_name}") from e
        return source
