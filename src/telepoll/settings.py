from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, StringConstraints, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import ConfigError, display_path, resolve_config_path
from .dispatcher import DEFAULT_ENDPOINT
from .params import MAX_LIMIT
from .poller import DEFAULT_READ_MARGIN_S
from .transport import DEFAULT_TIMEOUT_S

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class TelepollSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        env_prefix="TELEPOLL__",
        str_strip_whitespace=True,
    )

    bot_token: NonEmptyStr = Field(repr=False)
    endpoint: NonEmptyStr = DEFAULT_ENDPOINT
    request_timeout: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)
    read_margin: float = Field(default=DEFAULT_READ_MARGIN_S, gt=0)
    poll_timeout: int = Field(default=50, ge=0)
    poll_limit: int = Field(default=0, ge=0, le=MAX_LIMIT)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(
    path: str | Path | None = None, **overrides: Any
) -> tuple[TelepollSettings, Path | None]:
    """Load settings from TOML, with ``TELEPOLL__*`` env vars taking priority.

    An explicit ``path`` must exist. Without one, the home config is used when
    present and the environment alone otherwise.
    """
    cfg_path = resolve_config_path(path)
    if cfg_path.exists() and not cfg_path.is_file():
        raise ConfigError(f"Config path {display_path(cfg_path)} is not a file.")
    if not cfg_path.exists():
        if path:
            raise ConfigError(f"Missing config file {display_path(cfg_path)}.")
        return _load(None, overrides), None
    return _load(cfg_path, overrides), cfg_path


def _load(cfg_path: Path | None, overrides: dict[str, Any]) -> TelepollSettings:
    cfg = dict(TelepollSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "TelepollSettingsBound",
        (TelepollSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    where = display_path(cfg_path) if cfg_path is not None else "environment"
    try:
        return Bound(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {where}: {exc}") from exc
    except (SettingsError, ValueError) as exc:
        raise ConfigError(f"Malformed TOML in {where}: {exc}") from exc
