import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./yardpass.db")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))

    # Токен для сервисных вызовов (telegram-бот)
    SERVICE_TOKEN: str = os.getenv("SERVICE_TOKEN", "")

    # CORS
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ]

    # Timezone: локальное время зданий (тихие часы, границы суток для лимита)
    TIMEZONE: str = os.getenv("TIMEZONE", "Europe/Moscow")

    # Server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Telegram (уведомления жителям)
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

    # Парковка: условная вместимость для расчета заполненности
    PARKING_CAPACITY: int = int(os.getenv("PARKING_CAPACITY", "100"))

    # Rate limit
    RATE_LIMIT_CREATE_PASS_PER_HOUR: int = int(os.getenv("RATE_LIMIT_CREATE_PASS_PER_HOUR", "10"))

    # Поиск по номеру
    SEARCH_RESULT_LIMIT: int = int(os.getenv("SEARCH_RESULT_LIMIT", "50"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
