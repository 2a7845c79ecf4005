"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./forms.db"

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 24 * 7

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (public form links)
    FRONTEND_URL: str = "http://localhost:3000"

    # Form generation
    AI_PROVIDER: str = "gemini"  # gemini | openai
    AI_API_KEY: str = ""
    AI_MODEL: str = ""  # Empty = provider default
    AI_TIMEOUT_SECONDS: float = 60.0

    # Media storage for submission uploads
    STORAGE_BACKEND: str = "local"  # local | s3
    LOCAL_STORAGE_PATH: str = "/tmp/ai-forms-media"
    MEDIA_PUBLIC_BASE_URL: str = "http://localhost:8000/media"
    S3_BUCKET: str = "ai-forms-media"
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str = ""
    S3_URL_STYLE: str = ""  # path | virtual
    S3_PUBLIC_BASE_URL: str = ""  # CDN / custom domain in front of the bucket
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    # Uploads
    MAX_UPLOAD_FILE_SIZE_BYTES: int = 10 * 1024 * 1024
    # Delete files already stored for a submission when a later upload fails
    MEDIA_CLEANUP_ON_FAILURE: bool = False

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_API: int = 60
    RATE_LIMIT_PUBLIC_SUBMIT: int = 20
    RATE_LIMIT_AI: int = 10

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"


settings = Settings()
