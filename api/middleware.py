"""
Middleware for the quote journal API.
Provides CORS, request logging and exception-to-response mapping.
"""

import time
from typing import Callable
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from utils import (
    api_logger, api_metrics, config_manager, create_error_response,
    QuoteJournalError, ValidationError, NotFoundError
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """日志中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        api_logger.info(f"[API] {request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            api_logger.error(f"[API] {request.method} {request.url.path} - ERROR - {process_time:.3f}s - {e}")
            raise

        process_time = time.time() - start_time
        api_metrics.increment("requests")
        api_metrics.timing("request", process_time)
        api_logger.info(f"[API] {request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")

        # 添加处理时间到响应头
        response.headers["X-Process-Time"] = str(process_time)
        return response


def _error_status(error: QuoteJournalError) -> int:
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, NotFoundError):
        return 404
    return 500


async def quote_journal_error_handler(request: Request, exc: QuoteJournalError) -> JSONResponse:
    """把系统异常转换为统一的 JSON 错误响应"""
    status_code = _error_status(exc)
    if status_code >= 500:
        api_logger.error(f"[API] {request.method} {request.url.path} failed: {exc}")
    else:
        api_logger.warning(f"[API] {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content=create_error_response(exc))


def setup_cors(app: FastAPI):
    """设置CORS"""
    cors_origins = config_manager.get_api_config().cors_origins

    if "*" in cors_origins:
        api_logger.warning("[CORS] Using wildcard origin is not recommended for production")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def setup_middleware(app: FastAPI):
    """设置所有中间件和异常处理"""
    setup_cors(app)
    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(QuoteJournalError, quote_journal_error_handler)

    api_logger.info("[API] Middleware setup completed")
