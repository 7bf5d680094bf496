from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    SITE_URL: str = "https://www.example-limo.com"

    # MongoDB
    MONGO_URL: str = "mongodb://localhost:27017"
    DB_NAME: str = "limo_booking"

    # JWT
    JWT_SECRET: str = "changeme_minimum_32_chars_here_please"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # Google Directions (distance des trajets)
    GOOGLE_DIRECTIONS_API_KEY: Optional[str] = None

    # Tarification
    BUSINESS_TIMEZONE:           str   = "America/Los_Angeles"  # horloge des majorations horaires
    DEFAULT_DISTANCE_MILES:      float = 0.0    # fallback si la distance est inconnue
    DEFAULT_GRATUITY_PERCENTAGE: float = 15.0
    CURRENCY:                    str   = "USD"

    # Premier compte admin (seed_data.py)
    ADMIN_EMAIL:    str = "admin@example.com"
    ADMIN_PASSWORD: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=[".env", "../.env"],  # cherche dans backend/ puis dans la racine
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
