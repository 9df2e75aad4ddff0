from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mastery.domain.constants import (
    CONFIDENCE_WEIGHT,
    DEFAULT_DECAY_RATE,
    DEFAULT_INERTIA,
    DEFAULT_MAX_DAILY_DELTA,
    DEFAULT_WEAK_LIMIT,
    DEFAULT_WEAK_THRESHOLD,
    NEVER_REVIEWED_PRIORITY,
    RECENT_PRIORITY,
    TIME_PRIORITY_STEPS,
    TIME_WEIGHT,
)


def config_files() -> list[Path]:
    """Candidate TOML config files, highest priority first."""
    return [
        Path.home() / ".config/mastery/config.toml",
        Path.home() / ".mastery.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for mastery.
    Supports loading from:
    1. Config file (~/.config/mastery/config.toml or ~/.mastery.toml)
    2. Environment variables (MASTERY_*)
    3. Manual overrides (CLI / server)
    Later sources win.
    """

    model_config = SettingsConfigDict(
        env_prefix="MASTERY_",
        extra="ignore",
    )

    # Engine
    strategy: Literal["bayesian", "dampened"] = "dampened"
    decay_rate: float = Field(default=DEFAULT_DECAY_RATE, gt=0.0, le=1.0)
    inertia: float = Field(default=DEFAULT_INERTIA, ge=0.0, lt=1.0)
    max_daily_delta: float = Field(default=DEFAULT_MAX_DAILY_DELTA, gt=0.0)

    # Weak concepts
    weak_threshold: float = Field(default=DEFAULT_WEAK_THRESHOLD, ge=0.0, le=1.0)
    weak_limit: int = Field(default=DEFAULT_WEAK_LIMIT, ge=1)
    confidence_weight: float = CONFIDENCE_WEIGHT
    time_weight: float = TIME_WEIGHT
    never_reviewed_priority: float = NEVER_REVIEWED_PRIORITY
    time_priority_steps: list[tuple[int, float]] = Field(
        default_factory=lambda: list(TIME_PRIORITY_STEPS)
    )
    recent_priority: float = RECENT_PRIORITY

    # Storage
    db_path: Path | None = Field(
        default_factory=lambda: Path.home() / ".config/mastery/mastery.db"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("db_path", mode="before")
    @classmethod
    def resolve_db_path(cls, v: Any) -> Path | None:
        if v in (None, ""):
            return None
        if str(v) == ":memory:":
            return None
        return Path(v).expanduser().resolve()

    @field_validator("time_priority_steps")
    @classmethod
    def sort_steps(cls, v: list[tuple[int, float]]) -> list[tuple[int, float]]:
        # Steps are checked in order, so the longest gap must come first.
        return sorted(v, key=lambda step: step[0], reverse=True)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mastery/config.toml (if exists)
    3. Environment variables (MASTERY_*)
    4. cli_overrides; None values are ignored so they don't mask lower layers
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
