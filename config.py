import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        secret_key: str,
        token_max_age_hours: int,
        environment: str,
        log_level: str,
        currency_symbol: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.secret_key = secret_key
        self.token_max_age_hours = token_max_age_hours
        self.environment = environment
        self.log_level = log_level
        self.currency_symbol = currency_symbol

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_TIMEZONE", "Asia/Kolkata")
    secret_key = os.getenv(
        "FINANCE_SECRET_KEY",
        "5d3c0f0b8e9a4e51a1f7f2a0c6b14d2e9b7e8f61c4a2d3b5e6f708192a3b4c5d",
    )
    token_max_age_hours = int(os.getenv("FINANCE_TOKEN_MAX_AGE_HOURS", "720"))
    environment = os.getenv("FINANCE_ENV", "development").lower()
    log_level = os.getenv("FINANCE_LOG_LEVEL", "INFO").upper()
    currency_symbol = os.getenv("FINANCE_CURRENCY_SYMBOL", "₹")
    return Settings(
        database_url=database_url,
        timezone=timezone,
        secret_key=secret_key,
        token_max_age_hours=token_max_age_hours,
        environment=environment,
        log_level=log_level,
        currency_symbol=currency_symbol,
    )
