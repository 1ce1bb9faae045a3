from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


_BACKEND_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    APP_NAME: str = "PocketLedger Backend"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # 기본 SQLite 파일 DB. CWD에 따른 경로 문제를 피하려고 절대경로 사용
    DATABASE_URL: str = f"sqlite:///{_BACKEND_DIR / 'db.sqlite3'}"

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    TIMEZONE: str = "Asia/Kolkata"
    DEFAULT_CURRENCY: str = "INR"

    SESSION_TTL_HOURS: int = 24 * 7
    CONFIRMATION_TTL_HOURS: int = 24
    REQUIRE_EMAIL_CONFIRMATION: bool = False

    # Avatar uploads are written here and served under STORAGE_PUBLIC_URL
    STORAGE_DIR: Path = _BACKEND_DIR / "storage"
    STORAGE_PUBLIC_URL: str = "/storage"
    MAX_AVATAR_BYTES: int = 2 * 1024 * 1024

    TRANSACTIONS_PAGE_SIZE: int = 8
    RECENT_TRANSACTIONS_LIMIT: int = 5
    TOP_TRANSACTIONS_LIMIT: int = 4

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="POCKETLEDGER_", case_sensitive=False)

    @property
    def exposes_confirmation_tokens(self) -> bool:
        return self.ENV != "prod"


settings = Settings()
