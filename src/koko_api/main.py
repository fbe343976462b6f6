import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from koko_api.config.base_config import get_settings
from koko_api.config.logging_config import configure_logging
from koko_api.controllers.project_controller import router as project_controller
from koko_api.controllers.video_controller import router as video_controller
from koko_api.controllers.webhook_controller import router as webhook_controller
from koko_api.database import Base, engine
from koko_api.exceptions.exceptions import (
    BadRequestError,
    ConfigurationError,
    ForbiddenError,
    ProviderError,
    ResourceNotFoundError,
    UnauthorizedError,
)
from koko_api.exceptions.handlers import (
    bad_request_handler,
    configuration_error_handler,
    forbidden_handler,
    general_exception_handler,
    provider_error_handler,
    resource_not_found_handler,
    unauthorized_handler,
    validation_error_handler,
)
from koko_api.storage.bunny_client import BunnyClient

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup code
    Base.metadata.create_all(bind=engine)
    if not settings.bunny_configured:
        logger.warning("BUNNY_API_KEY or BUNNY_LIBRARY_ID not set; video operations will be rejected")
    app.state.bunny_client = BunnyClient(settings)
    logger.info(f"{settings.APP_NAME} started")
    yield
    # Shutdown code
    await app.state.bunny_client.close()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(ResourceNotFoundError, resource_not_found_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_handler)
    app.add_exception_handler(ForbiddenError, forbidden_handler)
    app.add_exception_handler(BadRequestError, bad_request_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(video_controller, prefix="/api")
    app.include_router(project_controller, prefix="/api")
    app.include_router(webhook_controller)

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("koko_api.main:app", host="0.0.0.0", port=8000)
