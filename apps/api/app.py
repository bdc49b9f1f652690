"""
FastAPI приложение Dalal
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid

from core.config.settings import settings
from core.database.session import db_manager
from core.logging.logger import logger, setup_logging
from shared.services.errors import (
    DocumentExtractionError,
    DuplicateSubmissionError,
    RecordNotFoundError,
    StoreError,
    ValidationError,
)
from .main import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения."""
    setup_logging()
    await db_manager.initialize()
    logger.info("API started", app=settings.app_name, environment=settings.environment)
    yield
    await db_manager.close()
    logger.info("API stopped")


def _error(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    content = {"error": error, "message": message}
    content.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def create_app() -> FastAPI:
    """Создание FastAPI приложения."""
    app = FastAPI(
        title=settings.app_name,
        description="API учета сотрудников, начислений, авансов и расходов",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware для логирования запросов
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Логирование всех HTTP запросов."""
        request_id = str(uuid.uuid4())
        start_time = time.time()

        logger.info(
            "HTTP Request started",
            request_id=request_id,
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "HTTP Request failed",
                request_id=request_id,
                error=str(e),
                process_time=time.time() - start_time,
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            "HTTP Request completed",
            request_id=request_id,
            status_code=response.status_code,
            process_time=process_time,
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)
        return response

    # Обработчики ошибок
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        """Ошибка валидации: запись не выполнялась."""
        logger.warning("Validation failed", path=request.url.path, error=str(exc), field=exc.field)
        return _error(400, "Validation Error", str(exc), field=exc.field)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Ошибка валидации тела или параметров запроса."""
        logger.warning("Request validation failed", path=request.url.path, errors=exc.errors())
        return _error(400, "Validation Error", "Ошибка валидации данных", details=exc.errors())

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        logger.info("Record not found", path=request.url.path, table=exc.table, record_id=exc.record_id)
        return _error(404, "Not Found", str(exc))

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        """Хранилище недоступно или отклонило операцию; состояние не изменилось."""
        logger.error("Store error", path=request.url.path, operation=exc.operation, table=exc.table, error=str(exc))
        return _error(503, "Store Error", str(exc))

    @app.exception_handler(DuplicateSubmissionError)
    async def duplicate_handler(request: Request, exc: DuplicateSubmissionError):
        logger.warning("Duplicate submission", path=request.url.path, action_key=exc.action_key)
        return _error(409, "Duplicate Submission", str(exc))

    @app.exception_handler(DocumentExtractionError)
    async def extraction_error_handler(request: Request, exc: DocumentExtractionError):
        logger.warning("Document extraction failed", path=request.url.path, error=str(exc))
        return _error(422, "Document Error", str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Обработчик HTTP исключений."""
        logger.error(
            "HTTP Exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
        )
        return _error(exc.status_code, "HTTP Error", str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Общий обработчик исключений."""
        logger.error(
            "General Exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )
        return _error(500, "Internal Server Error", "Внутренняя ошибка сервера")

    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Корневой эндпоинт."""
        return {
            "app": settings.app_name,
            "version": settings.version,
            "status": "running",
            "docs": "/docs" if settings.debug else "disabled",
        }

    @app.get("/health")
    async def health_check():
        """Проверка состояния приложения."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": settings.version,
        }

    return app


# Создаем экземпляр приложения
app = create_app()
