import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value):
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # Server
    PORT = int(os.getenv("PORT", "5000"))
    CORS_ORIGINS = _csv(os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:5174,http://localhost:3000",
    ))

    # Weather (OpenWeatherMap). Without a key the climate route uses a mock observation.
    OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY")
    WEATHER_TIMEOUT = float(os.getenv("WEATHER_TIMEOUT", "10"))

    # Assistant (Anthropic)
    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
    CHAT_MODEL = os.getenv("CHAT_MODEL", "claude-sonnet-4-20250514")
    CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "1024"))
    CHAT_HISTORY_TTL = int(os.getenv("CHAT_HISTORY_TTL", "3600"))
    CHAT_MAX_USERS = int(os.getenv("CHAT_MAX_USERS", "1000"))
    CHAT_MAX_MESSAGES = int(os.getenv("CHAT_MAX_MESSAGES", "10"))

    # Crop recommendations
    TOP_N_CROPS = int(os.getenv("TOP_N_CROPS", "5"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()
    LOG_DIR = os.getenv("LOG_DIR", "logs")
