#!/usr/bin/env python3
"""
Запуск API сервера Dalal
"""

import sys
import os

import uvicorn

# Добавляем корневую папку в путь
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def main():
    """Основная функция запуска API сервера."""
    from core.config.settings import settings

    print(f"🚀 Запуск {settings.app_name} API ({settings.environment})")
    print(f"🌐 API: http://{settings.api_host}:{settings.api_port}/api/v1")
    print(f"🔍 Health check: http://{settings.api_host}:{settings.api_port}/health")

    uvicorn.run(
        "apps.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
