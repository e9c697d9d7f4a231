"""Application settings with Pydantic validation."""

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpstreamConfig(BaseSettings):
    """Upstream market API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POLYWATCH_UPSTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="https://gamma-api.polymarket.com",
        description="Base URL of the Gamma market API",
    )
    cache_ttl: float = Field(default=60.0, description="Response cache TTL in seconds")
    timeout: float = Field(default=5.0, description="Per-request timeout in seconds")
    page_delay: float = Field(
        default=0.1, description="Pause between tag listing pages in seconds"
    )
    single_flight: bool = Field(
        default=False, description="Share one upstream call between concurrent misses"
    )

    @field_validator("cache_ttl", "timeout", mode="before")
    @classmethod
    def validate_positive(cls, v: float | str) -> float:
        v_float = float(v)
        if v_float <= 0:
            raise ValueError("Value must be positive")
        return v_float

    @field_validator("page_delay", mode="before")
    @classmethod
    def validate_non_negative(cls, v: float | str) -> float:
        v_float = float(v)
        if v_float < 0:
            raise ValueError("Value must not be negative")
        return v_float

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class DatabaseConfig(BaseSettings):
    """Database configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POLYWATCH_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    dsn: str = Field(default="", description="Full SQLAlchemy URL, overrides parts")
    host: str = Field(default="localhost")
    port: int = Field(default=5432)
    name: str = Field(default="polywatch")
    user: str = Field(default="postgres")
    password: str = Field(default="postgres")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        if self.dsn:
            return self.dsn
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class ApiConfig(BaseSettings):
    """HTTP API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POLYWATCH_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000)
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"]
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="POLYWATCH_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="polywatch")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)


def load_settings() -> Settings:
    """Load settings from environment."""
    return Settings()
