"""
Notes Gateway FastAPI Application
메인 애플리케이션 파일 - 서버 설정 및 라우트 구성
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import psycopg
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

# .env 파일 로드 (최우선)
load_dotenv()

from notes_gateway import __version__
from notes_gateway.config.resources import ResourceConfig
from notes_gateway.middlewares import limit_body_size, log_requests, verify_api_key
from notes_gateway.resources.database.database_manager import DatabaseFactory, DatabaseGateway
from notes_gateway.resources.logging import initialize_logging, shutdown_logging
from notes_gateway.routes.business.route_for_accounts import router as accounts_router
from notes_gateway.routes.business.route_for_folders import router as folders_router
from notes_gateway.routes.business.route_for_notes import router as notes_router
from notes_gateway.routes.business.route_for_raw import router as raw_router
from notes_gateway.routes.helpers.response_helper import ERROR_TYPES, error_response, validation_errors

logger = logging.getLogger(__name__)

# 애플리케이션 메타데이터
APP_INFO = {
    "title": "Notes Gateway",
    "description": "Accounts / Notes / Folders 데이터 접근 게이트웨이",
    "version": __version__,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 라이프사이클 관리
    시작 시 DB 연결 + 마이그레이션 (실패하면 기동 중단), 종료 시 정리
    """
    gateway: DatabaseGateway = app.state.gateway
    try:
        await gateway.connect()
        if app.state.migrate_on_startup:
            await gateway.migrate()
        logger.info("데이터베이스 준비 완료")
    except Exception:
        logger.exception("데이터베이스 연결 실패")
        raise

    try:
        yield
    finally:
        await gateway.disconnect()
        shutdown_logging()


def register_exception_handlers(app: FastAPI) -> None:
    """도메인/저장소 예외 -> 표준 오류 응답"""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(
            request,
            ERROR_TYPES.INVALID_BODY,
            errors=validation_errors(list(exc.errors())),
        )

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return error_response(
            request,
            ERROR_TYPES.INVALID_OPTIONS,
            errors=validation_errors(list(exc.errors())),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return error_response(
            request,
            ERROR_TYPES.INVALID_OPTIONS,
            detail=str(exc),
        )

    @app.exception_handler(psycopg.Error)
    async def database_error_handler(request: Request, exc: psycopg.Error):
        logger.error("DB 오류: %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(request, ERROR_TYPES.DB_FAILED)


def create_app(
    config: Optional[ResourceConfig] = None,
    gateway: Optional[DatabaseGateway] = None,
    migrate_on_startup: bool = True,
) -> FastAPI:
    """
    FastAPI 애플리케이션 생성

    Args:
        config: 리소스 설정 (기본: 환경 변수)
        gateway: 데이터베이스 게이트웨이 (기본: config.postgresql 로 생성)
        migrate_on_startup: 기동 시 마이그레이션 실행 여부
    """
    config = config or ResourceConfig.from_env()
    initialize_logging(config.logging)

    app = FastAPI(
        **APP_INFO,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.config = config
    app.state.gateway = gateway or DatabaseFactory.create_gateway(config.postgresql)
    app.state.migrate_on_startup = migrate_on_startup

    # 미들웨어 등록 (나중에 등록한 것이 바깥쪽)
    app.middleware("http")(verify_api_key)
    app.middleware("http")(limit_body_size(config.server.body_limit))
    app.middleware("http")(log_requests)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    register_exception_handlers(app)

    # 루트 엔드포인트 (공개)
    @app.get("/", response_model=Dict[str, Any])
    async def root():
        return {
            "name": APP_INFO["title"],
            "version": APP_INFO["version"],
            "secured": True,
            "message": "Include X-API-Key header to access endpoints",
        }

    # 라우터 등록
    app.include_router(accounts_router)
    app.include_router(notes_router)
    app.include_router(folders_router)
    app.include_router(raw_router)

    return app


app = create_app()


if __name__ == "__main__":
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(add_help=True)
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    args = parser.parse_args()

    server = app.state.config.server
    uvicorn.run(
        "main:app" if args.reload else app,
        host=server.host,
        port=server.port,
        log_level="info",
        access_log=True,
        reload=args.reload,
    )
