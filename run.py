#!/usr/bin/env python3
"""
Запуск API через uvicorn.
HOST, PORT и LOG_LEVEL берутся из yardpass.config, RELOAD=true включает автоперезагрузку.
"""
import os

import uvicorn

from yardpass.config import settings


def main() -> None:
    uvicorn.run(
        "yardpass.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
