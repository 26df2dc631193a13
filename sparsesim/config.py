"""
Configuration management for similarity scans.

Values come from, in increasing precedence: defaults, a YAML file,
``SPARSESIM_*`` environment variables and finally command-line flags.
"""

import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from .core.errors import ConfigError
from .core.topk import TieBreak


DEFAULT_CONFIG_FILE = ".sparsesim.yml"
ENV_PREFIX = "SPARSESIM_"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


@dataclass
class ScanConfig:
    """Settings for one scan run."""

    # Result cap per reference vector
    k: int = 50
    # Only the first N corpus members act as references (None = all)
    limit: Optional[int] = None

    # Pool settings
    workers: Optional[int] = None
    use_processes: bool = False
    chunk_size: Optional[int] = None

    tie_break: str = TieBreak.LEGACY.value

    # Input record field names
    id_field: str = "pid"
    indices_field: str = "features"
    values_field: str = "scores"

    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration parameters."""
        if not isinstance(self.k, int) or self.k < 1:
            raise ConfigError(f"k must be a positive integer, got {self.k!r}", key="k")

        if self.limit is not None and (not isinstance(self.limit, int) or self.limit < 0):
            raise ConfigError(f"limit must be a non-negative integer, got {self.limit!r}", key="limit")

        if self.workers is not None and (not isinstance(self.workers, int) or self.workers < 1):
            raise ConfigError(f"workers must be a positive integer, got {self.workers!r}", key="workers")

        if self.chunk_size is not None and (not isinstance(self.chunk_size, int) or self.chunk_size < 1):
            raise ConfigError(
                f"chunk_size must be a positive integer, got {self.chunk_size!r}", key="chunk_size"
            )

        try:
            self.tie_break = TieBreak.parse(self.tie_break).value
        except ValueError as e:
            raise ConfigError(str(e), key="tie_break") from e

        if str(self.log_level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"unknown log level {self.log_level!r}", key="log_level")
        self.log_level = str(self.log_level).upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanConfig":
        """Create from dictionary. Unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}", key=unknown[0])
        return cls(**data)

    def replace(self, **overrides: Any) -> "ScanConfig":
        """New config with ``overrides`` applied; None values are ignored."""
        data = self.to_dict()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return ScanConfig.from_dict(data)

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "ScanConfig":
        """Load configuration from YAML file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigError(f"Configuration file not found: {file_path}")

        try:
            with open(file_path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{file_path} must contain a mapping, got {type(data).__name__}")

        return cls.from_dict(data)


class ConfigManager:
    """Loads, displays and persists scan configuration."""

    # env var suffix -> (field, parser)
    ENV_OVERRIDES = {
        "K": ("k", int),
        "LIMIT": ("limit", int),
        "WORKERS": ("workers", int),
        "PROCESSES": ("use_processes", _parse_bool),
        "CHUNK_SIZE": ("chunk_size", int),
        "TIE_BREAK": ("tie_break", str),
        "LOG_LEVEL": ("log_level", str),
    }

    def __init__(self, config_path: Optional[Path] = None, console: Optional[Console] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to configuration file. An explicit path must
                exist; the default .sparsesim.yml is optional.
            console: Console for status output (defaults to stderr)
        """
        self.console = console or Console(stderr=True)
        self.explicit = config_path is not None
        self.config_path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_FILE)
        self._config: Optional[ScanConfig] = None

    def load(self) -> ScanConfig:
        """
        Load configuration from file or fall back to defaults.

        Only the default file may be missing. A missing explicit file, or an
        unreadable or invalid one, is an error.

        Returns:
            Loaded configuration with environment overrides applied
        """
        if self._config is not None:
            return self._config

        if self.explicit or self.config_path.exists():
            config = ScanConfig.load_from_file(self.config_path)
        else:
            config = ScanConfig()

        self._config = self._apply_env_overrides(config)
        return self._config

    def save(self, config: Optional[ScanConfig] = None) -> Path:
        """Save configuration to file."""
        config = config or self._config or ScanConfig()
        config.save_to_file(self.config_path)
        return self.config_path

    def display(self, config: Optional[ScanConfig] = None):
        """
        Display configuration in a formatted panel.

        Args:
            config: Configuration to display (uses current if None)
        """
        config = config or self.load()

        yaml_str = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)
        syntax = Syntax(yaml_str, "yaml", theme="monokai", line_numbers=True)
        panel = Panel(
            syntax,
            title="[bold cyan]Scan Configuration[/bold cyan]",
            border_style="cyan"
        )

        self.console.print(panel)

    def _apply_env_overrides(self, config: ScanConfig) -> ScanConfig:
        """Apply environment variable overrides."""
        overrides: Dict[str, Any] = {}

        for suffix, (name, parse) in self.ENV_OVERRIDES.items():
            raw = os.getenv(f"{ENV_PREFIX}{suffix}")
            if raw is None or raw == "":
                continue
            try:
                overrides[name] = parse(raw)
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for {ENV_PREFIX}{suffix}: {raw!r}", key=name
                ) from e

        if not overrides:
            return config
        return config.replace(**overrides)


def create_default_config_file(path: Optional[Path] = None) -> Path:
    """Write the default configuration to ``path``."""
    path = Path(path) if path else Path(DEFAULT_CONFIG_FILE)
    ScanConfig().save_to_file(path)
    return path
