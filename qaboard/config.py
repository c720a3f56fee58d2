import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

STORAGE_SQL = "sql"
STORAGE_FILE = "file"


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Settings:
    admin_key: str = ""
    storage: str = STORAGE_SQL
    database_url: str = "sqlite:///bandvopros.sqlite"
    data_file: str = "bandvopros.json"
    api_prefix: str = ""
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = 10 * 1024
    rate_limit: str = "300 per 15 minutes"
    static_dir: str | None = None
    env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and .env, if present)."""
        db_file = os.getenv("BV_DB_FILE", "bandvopros.sqlite")
        prefix = os.getenv("API_PREFIX", "").rstrip("/")

        storage = os.getenv("BV_STORAGE", STORAGE_SQL).lower()
        if storage not in (STORAGE_SQL, STORAGE_FILE):
            raise ValueError(f"BV_STORAGE must be '{STORAGE_SQL}' or '{STORAGE_FILE}', got '{storage}'")

        return cls(
            admin_key=os.getenv("BV_ADMIN_KEY", ""),
            storage=storage,
            database_url=os.getenv("DATABASE_URL", f"sqlite:///{db_file}"),
            data_file=os.getenv("BV_DATA_FILE", "bandvopros.json"),
            api_prefix=prefix,
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
            max_body_bytes=int(os.getenv("MAX_BODY_BYTES", str(10 * 1024))),
            rate_limit=os.getenv("RATE_LIMIT", "300 per 15 minutes").strip(),
            static_dir=os.getenv("STATIC_DIR") or None,
            env=os.getenv("ENV", "dev"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
        )
