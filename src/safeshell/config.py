"""Configuration for safeshell.

Settings are layered: dataclass defaults, then an optional YAML file, then
``SAFESHELL_*`` environment variables.

Example config file (``~/.safeshell/config.yml``)::

    shell: /bin/bash
    encoding: utf-8
    strict_programs: true
    log_level: info
"""

import codecs
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .backends import SubprocessBackend
from .logging import get_level_from_name

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".safeshell" / "config.yml"

ENV_PREFIX = "SAFESHELL_"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


@dataclass
class ShellConfig:
    """Settings for command execution.

    Attributes:
        shell: Shell executable used to run commands (None = /bin/sh)
        encoding: Encoding used to decode captured output
        strict_programs: Require program names to match the path-like allowlist
        log_level: Console log level name
    """

    shell: str | None = None
    encoding: str = "utf-8"
    strict_programs: bool = False
    log_level: str = "warning"

    def __post_init__(self) -> None:
        self.strict_programs = _parse_bool("strict_programs", self.strict_programs)
        # Raises ValueError for unknown names
        get_level_from_name(self.log_level)
        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError) as e:
            raise ValueError(f"Invalid encoding: {self.encoding!r}") from e
        if self.shell == "":
            self.shell = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ShellConfig":
        """Create from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**dict(data))

    def from_env(self, environ: Mapping[str, str] | None = None) -> "ShellConfig":
        """Return a copy with ``SAFESHELL_*`` environment overrides applied."""
        environ = os.environ if environ is None else environ
        data = self.to_dict()
        for name in data:
            value = environ.get(ENV_PREFIX + name.upper())
            if value is not None:
                data[name] = value
        return ShellConfig.from_dict(data)

    @property
    def level(self) -> int:
        return get_level_from_name(self.log_level)


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ShellConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Config file to read. When None, the default path is read if
            it exists; an explicit path must exist.
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Loaded ShellConfig

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the file is not a mapping or holds invalid settings
    """
    if path is None:
        config_path = DEFAULT_CONFIG_PATH
        if not config_path.exists():
            return ShellConfig().from_env(environ)
    else:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

    data = yaml.safe_load(config_path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    logger.debug(f"Loaded config from {config_path}")
    return ShellConfig.from_dict(data).from_env(environ)


def save_config(config: ShellConfig, path: str | Path | None = None) -> Path:
    """Write configuration as YAML and return the path written."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(yaml.safe_dump(config.to_dict(), sort_keys=False))
    return config_path


def create_backend(config: ShellConfig) -> SubprocessBackend:
    """Build the production backend for a configuration."""
    return SubprocessBackend(shell=config.shell, encoding=config.encoding)
