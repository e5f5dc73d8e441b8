from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import validator

class Settings(BaseSettings):
    PROJECT_NAME: str = "SAV Pro API"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "After-sales service ticket tracker"
    API_V1_STR: str = "/api"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:8081",  # Expo development
        "http://localhost:8000",  # Backend development
    ]

    # Database. When unset the process runs on the in-memory store.
    DATABASE_URL: Optional[str] = None

    # Database connection pool settings
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_COMMAND_TIMEOUT: int = 60  # 60 seconds
    SQL_ECHO: bool = False  # Set to True to log SQL queries (development only)

    # Security
    JWT_SECRET: str = "sav-pro-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    PASSWORD_MIN_LENGTH: int = 6

    # Demo data
    SEED_DEMO_ACCOUNTS: bool = False

    # Photo storage: "local", "s3" or "supabase"
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "uploads"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # AWS S3
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "eu-west-3"
    S3_BUCKET_NAME: str = ""

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    SUPABASE_STORAGE_BUCKET: str = "declaration-photos"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Performance
    ENABLE_RESPONSE_COMPRESSION: bool = True

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @validator("STORAGE_BACKEND")
    def check_storage_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("local", "s3", "supabase"):
            raise ValueError(f"Unknown storage backend: {v}")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
