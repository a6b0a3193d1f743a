"""
Configuration management for attachfs.

Handles loading and saving user configuration from:
- XDG config directory: ~/.config/attachfs/config.json
- Fallback: ~/.attachfs/config.json
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class FilesystemConfig:
    """Defaults for new AFileSystem instances."""
    name_prefix: str = "FS"
    read_only: bool = False


@dataclass
class HttpConfig:
    """HTTP client settings for remote attachments."""
    timeout: float = 10.0
    follow_redirects: bool = True


@dataclass
class CLIConfig:
    """CLI default options."""
    verbose: bool = False
    color: bool = True


@dataclass
class AttachFSConfig:
    """Main attachfs configuration."""
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    cli: CLIConfig = field(default_factory=CLIConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "filesystem": asdict(self.filesystem),
            "http": asdict(self.http),
            "cli": asdict(self.cli),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AttachFSConfig':
        """Create from dictionary."""
        return cls(
            filesystem=FilesystemConfig(**data.get("filesystem", {})),
            http=HttpConfig(**data.get("http", {})),
            cli=CLIConfig(**data.get("cli", {})),
        )


def get_config_path() -> Path:
    """
    Get configuration file path.

    Follows XDG Base Directory specification:
    1. $XDG_CONFIG_HOME/attachfs/config.json (usually ~/.config/attachfs/config.json)
    2. Fallback: ~/.attachfs/config.json

    Returns:
        Path to config file
    """
    xdg_config_home = Path.home() / ".config"
    if xdg_config_home.exists():
        config_dir = xdg_config_home / "attachfs"
    else:
        config_dir = Path.home() / ".attachfs"

    return config_dir / "config.json"


def load_config(config_path: Optional[Path] = None) -> AttachFSConfig:
    """
    Load configuration from file.

    Args:
        config_path: File to read; defaults to get_config_path()

    Returns:
        AttachFSConfig instance with loaded values or defaults
    """
    config_path = config_path or get_config_path()

    if not config_path.exists():
        return AttachFSConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
        return AttachFSConfig.from_dict(data)
    except (json.JSONDecodeError, OSError, TypeError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")
        return AttachFSConfig()


def save_config(config: AttachFSConfig, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to file.

    Args:
        config: Configuration to save
        config_path: File to write; defaults to get_config_path()

    Returns:
        Path written
    """
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def update_config(
    config_path: Optional[Path] = None,
    # Filesystem settings
    name_prefix: Optional[str] = None,
    read_only: Optional[bool] = None,
    # HTTP settings
    http_timeout: Optional[float] = None,
    http_follow_redirects: Optional[bool] = None,
    # CLI settings
    cli_verbose: Optional[bool] = None,
    cli_color: Optional[bool] = None,
) -> AttachFSConfig:
    """
    Update configuration.

    Only updates provided values, leaving others unchanged.
    """
    config = load_config(config_path)

    if name_prefix is not None:
        config.filesystem.name_prefix = name_prefix
    if read_only is not None:
        config.filesystem.read_only = read_only

    if http_timeout is not None:
        config.http.timeout = http_timeout
    if http_follow_redirects is not None:
        config.http.follow_redirects = http_follow_redirects

    if cli_verbose is not None:
        config.cli.verbose = cli_verbose
    if cli_color is not None:
        config.cli.color = cli_color

    save_config(config, config_path)
    return config
