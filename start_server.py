#!/usr/bin/env python3
"""
Startup script for the Epikom Hub backend
Creates missing tables, then serves the API and live feeds with uvicorn
"""

import os

import uvicorn

from app.config import settings
from create_tables import create_tables


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    # The live feed is in-process, so a reloading or multi-worker server splits it
    reload = os.getenv("RELOAD", "false").lower() == "true"

    if os.getenv("CREATE_TABLES", "true").lower() == "true":
        create_tables()

    print("Starting Epikom Hub Backend Server...")
    print(f"Listening on {host}:{port} (reload={reload})")
    print(f"Database: {settings.DATABASE_URL.split('@')[-1]}")
    print(f"Reminder scheduler: {'on' if settings.SCHEDULER_ENABLED else 'off'}, "
          f"every {settings.SCHEDULER_INTERVAL_MINUTES} minutes")
    print("=" * 50)

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
