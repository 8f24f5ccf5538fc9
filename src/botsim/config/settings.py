"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs - CLI flags passed by Click
  2. Env vars - ``BOTSIM_*`` prefix (``BOTSIM_GRID__WIDTH=7``)
  3. TOML file - ``botsim.toml`` discovered via walk-up
  4. Code defaults - baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_config`` walk-up discovery from
:mod:`botsim.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from botsim.config.discovery import find_config
from botsim.config.models import GridConfig, StreamConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``botsim.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class BotSimSettings(BaseSettings):
    """Unified settings for one botsim run.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.

    Attributes:
        config_path: The TOML file that was loaded, or None.
        error_log: File that receives a failure record when a run aborts.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "BOTSIM_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    summary: bool = False
    verbose: bool = False
    log_json: bool = False
    error_log: Path | None = None

    # --- TOML sections ---
    grid: GridConfig = Field(default_factory=GridConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start_dir: Path | None = None,
        width: int | None = None,
        height: int | None = None,
        **cli_flags: Any,
    ) -> BotSimSettings:
        """Construct settings from CLI invocation.

        Discovers ``botsim.toml`` via walk-up from *start_dir* (or uses the
        explicit *config_path*), then merges CLI flags as highest-priority
        overrides. *width* and *height* override only their own field of
        the ``[grid]`` section.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(start_dir)

        flags = {key: value for key, value in cli_flags.items() if value is not None}

        _tls.toml_path = toml_path
        try:
            settings = cls(config_path=toml_path, **flags)
        finally:
            _tls.toml_path = None

        overrides = {
            key: value for key, value in (("width", width), ("height", height)) if value is not None
        }
        if not overrides:
            return settings
        grid = GridConfig.model_validate({**settings.grid.model_dump(), **overrides})
        return settings.model_copy(update={"grid": grid})
