"""Application configuration using pydantic-settings."""

import functools
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


@dataclass(frozen=True)
class WebhookConfig:
    """Curriculum webhook settings handed to the goal-creation handler."""

    url: str | None
    timeout_seconds: float = 60.0
    debug: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.url)


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
            flattened['allowed_origins'] = data['server'].get('allowed_origins')
        if 'auth' in data:
            flattened['jwt_lifetime_days'] = data['auth'].get('lifetime_days')
            flattened['jwt_algorithm'] = data['auth'].get('algorithm')
        if 'storage' in data:
            flattened['data_dir'] = data['storage'].get('data_dir')
        if 'curriculum' in data:
            curriculum = data['curriculum']
            flattened['curriculum_webhook_url'] = curriculum.get('webhook_url')
            flattened['curriculum_webhook_timeout_seconds'] = (
                curriculum.get('timeout_seconds')
            )
            flattened['curriculum_webhook_debug'] = curriculum.get('debug')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Session tokens
    jwt_secret: str = Field(description="Secret used to sign session tokens")
    jwt_lifetime_days: int = Field(default=30)
    jwt_algorithm: str = Field(default="HS256")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    allowed_origins: str = Field(default="http://localhost:3000")

    # Curriculum webhook (None disables generation)
    curriculum_webhook_url: str | None = Field(default=None)
    curriculum_webhook_timeout_seconds: float = Field(default=60.0)
    curriculum_webhook_debug: bool = Field(default=False)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir: Path | None = Field(default=None)

    @property
    def storage_dir(self) -> Path:
        d = self.data_dir or self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def users_dir(self) -> Path:
        d = self.storage_dir / "users"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def goals_dir(self) -> Path:
        d = self.storage_dir / "goals"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def webhook_config(self) -> WebhookConfig:
        return WebhookConfig(
            url=self.curriculum_webhook_url,
            timeout_seconds=self.curriculum_webhook_timeout_seconds,
            debug=self.curriculum_webhook_debug,
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
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
