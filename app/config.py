import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_FILING_REQUIREMENTS_PATH = str(
    Path(__file__).resolve().parent / "data" / "state_filing_requirements.json"
)


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/parafort_docs"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Document storage
    document_upload_dir: str = os.getenv("DOCUMENT_UPLOAD_DIR", "uploads/documents")
    document_max_size_bytes: int = int(
        os.getenv("DOCUMENT_MAX_SIZE_BYTES", str(25 * 1024 * 1024))
    )  # 25MB

    # S3 / MinIO settings
    s3_endpoint_url: str = os.getenv("S3_ENDPOINT_URL", "")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "")
    s3_bucket_name: str = os.getenv("S3_BUCKET_NAME", "parafort-documents")
    s3_region: str = os.getenv("S3_REGION", "us-east-1")
    s3_presigned_url_expiry: int = int(os.getenv("S3_PRESIGNED_URL_EXPIRY", "3600"))

    # AI document analysis
    ai_analysis_url: str = os.getenv("AI_ANALYSIS_URL", "")
    ai_analysis_api_key: str = os.getenv("AI_ANALYSIS_API_KEY", "")
    ai_analysis_timeout_seconds: float = float(
        os.getenv("AI_ANALYSIS_TIMEOUT_SECONDS", "30")
    )

    # Sharing
    share_url_prefix: str = os.getenv("SHARE_URL_PREFIX", "/shared")
    share_password_rounds: int = int(os.getenv("SHARE_PASSWORD_ROUNDS", "12"))

    # Compliance
    filing_requirements_path: str = os.getenv(
        "FILING_REQUIREMENTS_PATH", _DEFAULT_FILING_REQUIREMENTS_PATH
    )
    compliance_reminder_window_days: int = int(
        os.getenv("COMPLIANCE_REMINDER_WINDOW_DAYS", "30")
    )

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv(
        "CELERY_RESULT_BACKEND", "redis://localhost:6379/1"
    )
    celery_task_always_eager: bool = _env_bool("CELERY_TASK_ALWAYS_EAGER")

    # Logging / tracing
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "text")
    otel_exporter_otlp_endpoint: str = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")
    otel_service_name: str = os.getenv("OTEL_SERVICE_NAME", "parafort-docs")

    # Branding
    brand_name: str = os.getenv("BRAND_NAME", "ParaFort")


settings = Settings()
