from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()


class Settings(BaseSettings):
    """Server-side configuration. Every value comes from the environment or .env."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./mentor.db"

    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen:latest"
    llm_temperature: float = 0.7
    llm_max_output_tokens: int = 2048

    gateway_url: str = "http://localhost:8000/mentor/stream"
    gateway_api_key: Optional[str] = None

    jwt_secret_key: str = Field(min_length=1)
    jwt_algorithm: str = "HS256"

    max_recommendations: int = 5
    pipeline_timeout_seconds: Optional[float] = None

    log_level: str = "INFO"
    log_dir: str = "logs"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def _engine_kwargs(url: str) -> dict:
    # SQLite connections are shared with the threadpool FastAPI uses for sync work.
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(get_settings().database_url, **_engine_kwargs(get_settings().database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def create_db():
    # Table classes must be registered on Base before create_all.
    import api.models.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
