"""
Базовый файл для всех доменных сущностей
Решает проблему циклических импортов
"""

from uuid import uuid4

from sqlalchemy.orm import declarative_base

# Создаем общую Base для всех моделей
Base = declarative_base()


def generate_id() -> str:
    """Непрозрачный идентификатор записи."""
    return str(uuid4())
