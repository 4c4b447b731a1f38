import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    pool_min_size: int = 1
    pool_max_size: int = 5
    redis_url: str = "redis://localhost:6379/0"
    history_limit: int = 100
    token_expire_days: Optional[int] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "Settings":
        database_url = os.getenv("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL must be configured in the environment for persistence.")

        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET must be configured in the environment to sign tokens.")

        expire_days = os.getenv("JWT_EXPIRE_DAYS")

        return cls(
            database_url=database_url,
            jwt_secret=jwt_secret,
            pool_min_size=int(os.getenv("DB_POOL_MIN_SIZE", "1")),
            pool_max_size=int(os.getenv("DB_POOL_MAX_SIZE", "5")),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            history_limit=int(os.getenv("HISTORY_LIMIT", "100")),
            token_expire_days=int(expire_days) if expire_days else None,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
