"""Engine configuration loading and validation."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import IO, Any, Callable, ClassVar, Dict, Literal

import yaml
from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_LOCATIONS: tuple[Path, ...] = (
    Path("./config/work_tree.yaml"),
    Path("./config/work_tree.yml"),
)

SYNC_EXEC_MODE_ALIASES = {
    "async": "inline",
    "event_loop": "inline",
    "loop": "inline",
}


class EngineSettings(BaseSettings):
    """Validated settings for the tree execution engine."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="WORK_TREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level applied by configure_logging().",
    )
    fail_fast_default: bool = Field(
        default=True,
        description="fail_fast value for trees that do not set one explicitly.",
    )
    sync_exec_mode: Literal["inline", "thread"] = Field(
        default="inline",
        description="Run synchronous execute callables on the event loop or in a worker thread.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("sync_exec_mode", mode="before")
    @classmethod
    def _normalize_exec_mode(cls, value: str) -> str:
        if isinstance(value, str):
            normalized = value.strip().lower()
            return SYNC_EXEC_MODE_ALIASES.get(normalized, normalized)
        return value

    config_path: Path | None = Field(
        default=None,
        description="Resolved path to the on-disk config that seeded the settings.",
        exclude=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[EngineSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            config_file_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )


CONFIG_PARSERS: Dict[str, Callable[[IO[str]], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def config_file_settings() -> Dict[str, Any]:
    """Values from the first readable config file, or ``{}`` when none exists.

    ``WORK_TREE_CONFIG_FILE`` is tried before the default locations. Files
    with a suffix other than ``.yaml``, ``.yml`` or ``.json`` are passed over.
    """

    explicit = os.getenv("WORK_TREE_CONFIG_FILE")
    candidates = [Path(explicit).expanduser()] if explicit else []
    for path in [*candidates, *DEFAULT_CONFIG_LOCATIONS]:
        parse = CONFIG_PARSERS.get(path.suffix.lower())
        if parse is None or not path.is_file():
            continue
        try:
            with path.open("r", encoding="utf-8") as handle:
                raw = parse(handle)
        except OSError as exc:
            raise RuntimeError(f"Failed to read work-tree config file {path}") from exc
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ValueError(f"Invalid work-tree config file {path}") from exc
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(f"Work-tree config file {path} must contain a mapping at top level.")
        return {"config_path": path, **raw}
    return {}


@lru_cache()
def get_settings() -> EngineSettings:
    """Return memoized engine settings."""

    return EngineSettings()
