"""Configuration management for schemagate using Pydantic models."""

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemagate.models import Stage

CONFIG_FILE_NAME = ".schemagate.json"

DEFAULT_THREAD_POOL_SIZE = 16
DEFAULT_COMPILE_TIMEOUT_SECONDS = 600.0


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class RuleSetConfig(BaseModel):
    """Rule-set configuration section."""
    files: list[str] = Field(default_factory=list)
    base_dir: str = Field(alias="baseDir", default="schematron")
    phase: str | None = None
    stylesheets: dict[Stage, str] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class ValidationConfig(BaseModel):
    """Validation configuration section."""
    namespace: str | None = None
    suppress_warnings: bool = Field(alias="suppressWarnings", default=False)
    priority: int = 10

    @field_validator("priority")
    @classmethod
    def clamp_priority(cls, v):
        """Clamp priority into 1..100 (1 is the highest)."""
        return max(1, min(100, v))

    @field_validator("namespace")
    @classmethod
    def empty_namespace_is_none(cls, v):
        return v or None

    model_config = ConfigDict(populate_by_name=True)


class PoolConfig(BaseModel):
    """Compilation pool configuration section."""
    thread_pool_size: int = Field(alias="threadPoolSize", default=DEFAULT_THREAD_POOL_SIZE)
    compile_timeout_seconds: float = Field(
        alias="compileTimeoutSeconds", default=DEFAULT_COMPILE_TIMEOUT_SECONDS
    )

    @field_validator("thread_pool_size")
    @classmethod
    def validate_thread_pool_size(cls, v):
        if v < 1:
            raise ValueError("thread_pool_size must be >= 1")
        return v

    @field_validator("compile_timeout_seconds")
    @classmethod
    def validate_compile_timeout(cls, v):
        if v <= 0:
            raise ValueError("compile_timeout_seconds must be > 0")
        return v

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.INFO

    model_config = ConfigDict(use_enum_values=True)


class EngineConfig(BaseModel):
    """Complete schemagate configuration model."""
    id: str | None = None
    rule_sets: RuleSetConfig = Field(alias="ruleSets", default_factory=RuleSetConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def load_config(config_path: str | Path | None = None) -> EngineConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .schemagate.json

    Returns:
        EngineConfig: Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return EngineConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
    else:
        return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .schemagate.json by searching up the directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None


def create_default_config() -> EngineConfig:
    """Create default configuration: no rule sets, 16 workers, 10 minute timeout."""
    return EngineConfig()
