"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Paths, URL prefix and storage backend are validated at
load time.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings have defaults; validate_paths_and_storage rejects
    combinations that would produce malformed URLs or an unusable backend.
    """

    # App
    app_name: str = "sharebox"
    app_version: str = "1.0.0"
    debug: bool = False

    # Routes: file routes are bound under mount_path.
    mount_path: str = ""
    upload_path: str = "/upload"
    get_path: str = "/get"
    # Prefix of URLs returned by uploads; <protocol_host><id><extension> must hit get_path.
    protocol_host: str = "http://localhost:8000/get/"

    # Streaming
    buffer_size: int = Field(default=1024, gt=0)
    # Content types served inline (case-insensitive); everything else is an attachment.
    whitelisted_content_types: str = (
        "image/png,image/jpeg,image/gif,image/webp,text/plain,video/mp4"
    )

    # CORS: non-empty installs the CORS request hook.
    allowed_origins: str = ""

    # Storage
    storage_backend: str = "local"
    storage_root: str = "./data/sharebox"
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    max_upload_size: int = 100 * 1024 * 1024  # 100MB

    # Request / middleware
    request_id_header: str = "X-Request-ID"

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def content_type_whitelist(self) -> list[str]:
        """Whitelisted content types as a list."""
        return _split_csv(self.whitelisted_content_types)

    @property
    def allowed_origin_list(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return _split_csv(self.allowed_origins)

    @model_validator(mode="after")
    def validate_paths_and_storage(self) -> "Settings":
        """Validate route paths, URL prefix and storage backend.

        - upload_path and get_path start with "/"; mount_path is empty or starts with "/".
        - protocol_host ends with "/" so the id appends cleanly.
        - storage_backend is local, s3 or memory; s3 requires s3_bucket.
        """
        for name in ("upload_path", "get_path"):
            value = getattr(self, name)
            if not value.startswith("/"):
                raise ValueError(f"{name} must start with '/', got: {value!r}")
        if self.mount_path and (
            not self.mount_path.startswith("/") or self.mount_path.endswith("/")
        ):
            raise ValueError(
                "mount_path must be empty or start (and not end) with '/', "
                f"got: {self.mount_path!r}"
            )
        if not self.protocol_host.endswith("/"):
            raise ValueError(
                f"protocol_host must end with '/', got: {self.protocol_host!r}"
            )
        backend = self.storage_backend.lower()
        if backend == "s3":
            if not self.s3_bucket:
                raise ValueError(
                    "s3_bucket is required when storage_backend is 's3'. "
                    "Set S3_BUCKET environment variable or update .env file."
                )
        elif backend not in ("local", "memory"):
            raise ValueError(
                f"Invalid storage_backend '{self.storage_backend}'. "
                "Must be one of: 'local', 's3', 'memory'"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
