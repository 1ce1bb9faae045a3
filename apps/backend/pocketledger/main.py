import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .core.config import settings
from .core.logging_config import configure_logging
from .routers import register_routers
from .services.errors import AuthenticationError, ServiceError

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

# CORS (프론트엔드 연결 준비)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "Content-Disposition"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=headers)


@app.get("/health")
def health():
    return {"status": "ok"}


register_routers(app)

# 아바타 등 업로드 파일 정적 서빙
Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.STORAGE_PUBLIC_URL, StaticFiles(directory=settings.STORAGE_DIR), name="storage")
