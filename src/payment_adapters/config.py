"""Configuration management for the payment adapters."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BorgunSettings(BaseSettings):
    """Borgun (SOAP/XML) credentials."""

    processor: str = Field(default="", description="Borgun processor id")
    merchant_id: str = Field(default="", description="Borgun merchant id")
    username: str = Field(default="", description="Basic auth username")
    password: str = Field(default="", description="Basic auth password")
    terminal_id: str = Field(default="1", description="Terminal id sent with every request")

    model_config = SettingsConfigDict(env_prefix="PAYMENT_ADAPTERS_BORGUN_", extra="ignore")


class CommerceHubSettings(BaseSettings):
    """CommerceHub (JSON + HMAC) credentials."""

    api_key: str = Field(default="", description="CommerceHub API key")
    api_secret: str = Field(default="", description="CommerceHub API secret used for HMAC signing")
    merchant_id: str = Field(default="", description="Merchant id")
    terminal_id: str = Field(default="", description="Terminal id")

    model_config = SettingsConfigDict(env_prefix="PAYMENT_ADAPTERS_COMMERCE_HUB_", extra="ignore")


class MockSettings(BaseSettings):
    """In-process mock adapter settings."""

    default_response: str = Field(
        default="authorized",
        description="Response for unknown cards (authorized or declined)",
    )
    latency_ms: int = Field(default=0, description="Simulated processing latency")

    model_config = SettingsConfigDict(env_prefix="PAYMENT_ADAPTERS_MOCK_", extra="ignore")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=True, description="Render logs as JSON")
    log_wire_transcripts: bool = Field(
        default=False,
        description="Log scrubbed wire transcripts at debug level",
    )

    # Adapter defaults
    test_mode: bool = Field(default=True, description="Talk to processor test endpoints")
    ssl_strict: bool = Field(default=True, description="Verify processor TLS certificates")
    timeout_seconds: float = Field(default=10.0, description="Processor request timeout")

    # Processors
    borgun: BorgunSettings = Field(default_factory=BorgunSettings)
    commerce_hub: CommerceHubSettings = Field(default_factory=CommerceHubSettings)
    mock: MockSettings = Field(default_factory=MockSettings)

    model_config = SettingsConfigDict(
        env_prefix="PAYMENT_ADAPTERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


# Global settings instance
settings = Settings()
