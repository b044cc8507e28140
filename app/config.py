from pydantic_settings import BaseSettings
from pydantic import field_validator
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./property_search.db"
    REDIS_URL: str = ""
    MARKETPLACE_API_URL: str = "http://localhost:5000"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    AI_SEARCH_TIMEOUT_SECONDS: float = 15.0
    FETCH_RETRY_ATTEMPTS: int = 3
    FETCH_RETRY_DELAY: float = 1.0
    MAX_RECENT_SEARCHES: int = 10
    MAX_COMPARISON_CLIENTS: int = 10000
    DEMO_COORDINATES: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @field_validator("DATABASE_URL")
    def encode_database_url(cls, v):
        """
        Re-encodes Postgres URLs so special characters in the password survive
        and adds sslmode=require. Other backends (SQLite) pass through untouched.
        """
        if v and v.startswith("postgresql"):
            try:
                url = make_url(v)
                # asyncpg takes SSL through connect_args, see app.database
                if url.drivername != "postgresql+asyncpg":
                    query = dict(url.query)
                    query["sslmode"] = "require"
                    url = url.set(query=query)
                return url.render_as_string(hide_password=False)
            except Exception:
                # If parsing fails, return the original value.
                return v
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
