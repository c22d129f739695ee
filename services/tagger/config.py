"""
Configuration for the tagger service.

Values are resolved in increasing priority from the dataclass defaults, an
optional YAML file, ``TAGGER_*`` environment variables and finally the
command-line flags handled in ``main.py``.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigError
from .extractor import DEFAULT_CHUNK_SIZE, EXECUTORS
from .output import OUTPUT_FORMATS
from .patterns import BOUNDARY_MODES

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path("/tmp")
DEFAULT_MAX_ROWS = 10_000

_INT_FIELDS = {"max_rows", "max_workers", "chunk_size"}
_BOOL_FIELDS = {"skip_invalid_ids"}


@dataclass(frozen=True)
class TaggerConfig:
    """Everything a tagging run needs."""

    input_path: str = str(DEFAULT_DATA_DIR / "job_desc.parquet")
    vocabulary_path: str = str(DEFAULT_DATA_DIR / "tags.json")
    output_path: str = str(DEFAULT_DATA_DIR / "job_tags.json")
    token_output_path: str = str(DEFAULT_DATA_DIR / "job_tokens.json")
    max_rows: Optional[int] = DEFAULT_MAX_ROWS
    text_column: str = "description"
    id_column: str = "id"
    max_workers: Optional[int] = None
    executor: str = "process"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    skip_invalid_ids: bool = False
    boundary: str = "word"
    output_format: str = "json"

    def validate(self) -> "TaggerConfig":
        """Raise ConfigError when a value is out of range; return self otherwise."""
        if self.max_rows is not None and self.max_rows < 1:
            raise ConfigError(f"max_rows must be positive, got {self.max_rows}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigError(f"max_workers must be positive, got {self.max_workers}")
        if self.chunk_size < 1:
            raise ConfigError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.executor not in EXECUTORS:
            raise ConfigError(f"executor must be one of {EXECUTORS}, got {self.executor!r}")
        if self.boundary not in BOUNDARY_MODES:
            raise ConfigError(
                f"boundary must be one of {BOUNDARY_MODES}, got {self.boundary!r}"
            )
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}"
            )
        if self.text_column == self.id_column:
            raise ConfigError("text_column and id_column must differ")
        return self

    def with_overrides(self, overrides: Mapping[str, Any]) -> "TaggerConfig":
        """Return a copy with every non-None override applied."""
        known = {item.name for item in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")
        changes = {
            key: _coerce(key, value) for key, value in overrides.items() if value is not None
        }
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "TaggerConfig":
        return cls().with_overrides(config_dict)


def _coerce(key: str, value: Any) -> Any:
    try:
        if key in _INT_FIELDS:
            return int(value)
        if key in _BOOL_FIELDS:
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "on"}
            return bool(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from exc
    if isinstance(value, Path):
        return str(value)
    return value


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Collect ``TAGGER_<FIELD>`` environment variables."""
    environ = os.environ if environ is None else environ
    overrides = {}
    for item in fields(TaggerConfig):
        value = environ.get(f"TAGGER_{item.name.upper()}")
        if value:
            overrides[item.name] = value
    return overrides


def load_tagger_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TaggerConfig:
    """
    Build the tagger configuration from YAML and the environment.

    Args:
        config_path: Optional YAML file with a flat mapping of
            ``TaggerConfig`` field names, or the same mapping under a
            ``tagger`` key.
        environ: Environment to read ``TAGGER_*`` overrides from; defaults to
            ``os.environ``.

    Returns:
        Validated TaggerConfig.

    Raises:
        ConfigError: If the file is missing or invalid, or a value is out of
            range.

    Example:
        >>> config = load_tagger_config("config/tagger.yml")
        >>> config.max_rows
        10000
    """
    config = TaggerConfig()

    if config_path:
        logger.info("Loading tagger configuration", extra={"config_path": config_path})
        try:
            with open(config_path, encoding="utf-8") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}") from e

        if not config_dict:
            logger.warning("Empty configuration file, using defaults")
            config_dict = {}
        if isinstance(config_dict, Mapping) and isinstance(config_dict.get("tagger"), Mapping):
            config_dict = config_dict["tagger"]
        if not isinstance(config_dict, Mapping):
            raise ConfigError(
                f"Configuration must be a mapping, got {type(config_dict).__name__}"
            )
        config = config.with_overrides(config_dict)

    config = config.with_overrides(env_overrides(environ))
    return config.validate()
