"""
Runtime configuration for hum.
Reads environment variables (and a local .env file) into typed sections.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class TimeoutConfig:
    """Timeouts (seconds) for external tools and network operations."""
    probe: int = field(default_factory=lambda: _env_int("HUM_TIMEOUT_PROBE", 5))
    git: int = field(default_factory=lambda: _env_int("HUM_TIMEOUT_GIT", 10))
    network: int = field(default_factory=lambda: _env_int("HUM_TIMEOUT_NETWORK", 30))
    push: int = field(default_factory=lambda: _env_int("HUM_TIMEOUT_PUSH", 60))
    template: int = field(default_factory=lambda: _env_int("HUM_TIMEOUT_TEMPLATE", 120))
    ssh_connect: int = field(default_factory=lambda: _env_int("HUM_TIMEOUT_SSH", 30))
    remote_inventory: int = field(default_factory=lambda: _env_int("HUM_TIMEOUT_REMOTE_INVENTORY", 10))


@dataclass
class GitHubConfig:
    """Configuration for GitHub integration."""
    token: str = field(default_factory=lambda: os.getenv("HUM_GITHUB_TOKEN", ""))
    api_url: str = field(default_factory=lambda: os.getenv("HUM_GITHUB_API_URL", "https://api.github.com"))
    default_branch: str = "main"


@dataclass
class Config:
    """Main configuration container."""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)

    # Paths
    config_dir: Path = field(default_factory=lambda: Path(os.getenv("HUM_CONFIG_DIR", str(Path.home() / ".hum"))))
    ansible_dir: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["HUM_ANSIBLE_DIR"]) if os.getenv("HUM_ANSIBLE_DIR") else None
    )

    verbose: bool = field(default_factory=lambda: os.getenv("HUM_VERBOSE", "false").lower() == "true")

    @property
    def keys_dir(self) -> Path:
        return self.config_dir / "keys"

    def resolve_ansible_dir(self) -> Path:
        """Ansible working directory; defaults to ./ansible in the current directory."""
        return self.ansible_dir or Path.cwd() / "ansible"

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls()


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached instance so the next get_config() re-reads the environment."""
    global _config
    _config = None
