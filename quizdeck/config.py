# quizdeck/config.py
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings read from the environment (or ``.env``)."""

    database_url: str
    env: Literal["dev", "stage", "prod"] = "dev"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    access_log: bool = True
    sql_echo: bool = False

    # Dev convenience: create tables on startup instead of running Alembic
    auto_init_db: bool = True

    # Used by ``python -m quizdeck.main``
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def is_dev(self) -> bool:
        return self.debug or self.env == "dev"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


settings = Settings()  # type: ignore[call-arg]
