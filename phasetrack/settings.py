"""
Deployment settings loaded from the environment (or a local .env file).

Protocol constants (phases, offsets, required activities) are not settings;
they live in phasetrack.protocol.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PHASETRACK_",
        case_sensitive=True,
        extra="ignore",
    )

    # Calendar days are counted on this zone's midnights
    REFERENCE_TIMEZONE: str = Field(default="America/Chicago")

    # DynamoDB
    AWS_REGION: str = Field(default="us-east-1")
    DYNAMODB_ENDPOINT_URL: str | None = Field(default="http://localhost:8000")
    TABLE_PREFIX: str = Field(default="")

    # Stimulus blob store and local cache
    STIMULUS_BUCKET: str | None = Field(default=None)
    STIMULUS_PREFIX: str = Field(default="")
    STIMULUS_CACHE_DIR: str = Field(default="audio_cache")
    STIMULUS_CACHE_TTL_SECONDS: int = Field(default=15 * 60, ge=1)

    # Reminders
    EMAIL_SENDER: str | None = Field(default=None)
    STUDY_TEAM_NAME: str = Field(default="Perceptual Training Team")
    REMINDER_FOLLOWUP_POSTTESTS: bool = Field(default=False)


settings = Settings()
