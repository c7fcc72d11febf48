from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from backend project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    database_ssl: bool = False  # managed Postgres (e.g. Neon) needs SSL through asyncpg

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling rules
    availability_window_days: int = 14  # default window is today .. today+13
    appointment_id_prefix: str = "APT"
    appointment_id_width: int = 6
    invoice_id_prefix: str = "INV"
    invoice_id_width: int = 5
    therapist_id_prefix: str = "NPL"
    therapist_id_width: int = 3

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.env == "production"


settings = Settings()
