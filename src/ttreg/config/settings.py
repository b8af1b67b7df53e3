"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``TTREG_*`` prefix, ``__`` for nesting
                    (e.g. ``TTREG_PROTOCOL__TIMEOUT=5``)
  3. TOML file    — ``ttreg.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from ttreg.config.discovery import find_config
from ttreg.config.models import ProtocolConfig, QueueConfig, ServerConfig, ValidationConfig
from ttreg.domain.errors import InvalidArgumentError


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``ttreg.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Pydantic builds sources inside __init__, so the TOML path travels here.
_tls = threading.local()


class TtregSettings(BaseSettings):
    """All settings for one ttreg invocation, frozen after construction.

    Attributes:
        root: Directory relative paths are resolved against (the directory
            holding ``ttreg.toml``, or CWD if none was found).
        config_path: The TOML file in use, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TTREG_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    servers: dict[str, ServerConfig] = Field(default_factory=dict)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    premod: QueueConfig = Field(default_factory=QueueConfig)
    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig)

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
        root: Path | None = None,
        **cli_flags: Any,
    ) -> TtregSettings:
        """Construct settings for a CLI invocation.

        Uses *config_path* when given, otherwise walks up from *root*
        (or CWD) for ``ttreg.toml``.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
            toml_path = p
        else:
            toml_path = find_config(root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(root=resolved_root, config_path=toml_path, **cli_flags)
        except ValidationError as exc:
            source = toml_path or "environment"
            msg = f"Invalid configuration in {source}:\n{exc}"
            raise click.ClickException(msg) from exc
        finally:
            _tls.toml_path = None

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def queue_path(self) -> Path:
        path = Path(self.premod.queue_path)
        return path if path.is_absolute() else self.root / path

    @property
    def reply_timeout(self) -> float | None:
        return self.protocol.timeout or None

    def server(self, name: str) -> ServerConfig:
        """Return the configured server *name*.

        Raises:
            InvalidArgumentError: If no such server is configured.
        """
        try:
            return self.servers[name]
        except KeyError:
            msg = f'No server named "{name}" is configured'
            raise InvalidArgumentError(msg) from None
