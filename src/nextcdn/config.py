from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # MongoDB URI including the files database name, e.g. mongodb://localhost/cdn
    sessions_database: str  # Database of the account service that owns the sessions collection
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    cors_origins: list[str] = []
    forwarded_allow_ips: str = "127.0.0.1"  # Proxies whose X-Forwarded-* headers are trusted

    s3_endpoint: str
    s3_region: str = ""
    s3_bucket_name: str
    s3_access_key: str
    s3_secret_key: str

    clamav_enabled: bool = True
    clamav_host: str = "127.0.0.1"
    clamav_port: int = 3310

    file_timeout_hours: int = 3  # Unlinked files older than this are reaped
    signature_expiry_seconds: int = 3600  # Lifetime of a signed retrieval URL
    cleanup_interval_seconds: int = 30 * 60
    max_file_size: int = 25 * 1024 * 1024
    store_timeout_seconds: float = 10.0  # Upper bound for every MongoDB, S3 and ClamAV call
    preview_timeout_seconds: float = 10.0
    assets_path: str = "./assets"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "CDN_",
        "extra": "ignore",
        "frozen": True,
    }
