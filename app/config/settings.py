# app/config/settings.py
# Runtime configuration for the hub service

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings read from the environment"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./epikom_hub.db")
    DATABASE_SSL: bool = os.getenv("DATABASE_SSL", "false").lower() == "true"

    # Auth (tokens are issued by the hosted auth service)
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")

    # CORS
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    ]

    # Sync behaviour
    LOADING_TIMEOUT_SECONDS: float = float(os.getenv("LOADING_TIMEOUT_SECONDS", 5))
    NOTIFICATION_PAGE_SIZE: int = int(os.getenv("NOTIFICATION_PAGE_SIZE", 50))

    # Alerts
    OVERDUE_ALERT_LIMIT: int = int(os.getenv("OVERDUE_ALERT_LIMIT", 10))
    UPCOMING_DEADLINE_LIMIT: int = int(os.getenv("UPCOMING_DEADLINE_LIMIT", 5))
    UPCOMING_WINDOW_DAYS: int = int(os.getenv("UPCOMING_WINDOW_DAYS", 7))

    # Scheduler
    SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
    SCHEDULER_INTERVAL_MINUTES: int = int(os.getenv("SCHEDULER_INTERVAL_MINUTES", 30))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
