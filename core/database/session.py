"""
Фабрика для создания сессий базы данных
"""

from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from core.config.settings import settings
from core.logging.logger import logger


class DatabaseManager:
    """Менеджер базы данных для создания сессий."""

    def __init__(self):
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self._initialized = False

    async def initialize(self, database_url: Optional[str] = None):
        """Инициализирует подключение к базе данных."""
        if self._initialized:
            return

        try:
            url = database_url or settings.async_database_url

            if url.startswith("sqlite"):
                # In-memory SQLite живет, пока жив единственный коннект
                self.engine = create_async_engine(
                    url,
                    echo=settings.database_echo,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                self.engine = create_async_engine(
                    url,
                    echo=settings.database_echo,
                    poolclass=NullPool,
                )

            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            self._initialized = True
            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    async def create_tables(self):
        """Создает таблицы всех сущностей."""
        # Регистрация моделей в metadata
        from domain.entities import Base

        if not self._initialized:
            await self.initialize()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def close(self):
        """Закрывает подключение к базе данных."""
        if self.engine:
            await self.engine.dispose()
            self._initialized = False
            logger.info("Database connection closed")

    def get_session(self) -> AsyncSession:
        """Возвращает новую сессию базы данных."""
        if not self._initialized:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        return self.session_factory()

    async def get_session_async(self) -> AsyncGenerator[AsyncSession, None]:
        """Асинхронный генератор для получения сессий."""
        session = self.get_session()
        try:
            yield session
        finally:
            await session.close()


# Глобальный экземпляр менеджера БД
db_manager = DatabaseManager()


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Контекстный менеджер сессии для скриптов."""
    await db_manager.initialize()
    session = db_manager.get_session()
    try:
        yield session
    finally:
        await session.close()
