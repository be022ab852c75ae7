import logging
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .error import ClientError, ServerError
from .metrics import record_guardrail_rejection, record_http_request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


def _request_id(request: Request) -> str:
    return getattr(request.state, "rid", None) or request.headers.get(
        REQUEST_ID_HEADER, ""
    )


def error_response(
    request: Request, status_code: int, code: str, message: str, details=None
) -> JSONResponse:
    rid = _request_id(request)
    content = {"error": code, "message": message, "rid": rid}
    if details:
        content["details"] = details
    return JSONResponse(
        status_code=status_code, content=content, headers={REQUEST_ID_HEADER: rid}
    )


async def handle_client_error(request: Request, exc: ClientError):
    error = exc.base_error
    logger.warning(f"Client error: {error.code} {error.message} rid={_request_id(request)}")
    return error_response(request, exc.status_code, error.code, error.message, error.details)


async def handle_server_error(request: Request, exc: ServerError):
    error = exc.base_error
    logger.error(f"Server error: {error.code} {error.message} rid={_request_id(request)}")
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error.code,
        error.message,
        error.details,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.warning(f"Invalid payload: {errors} rid={_request_id(request)}")
    record_guardrail_rejection("invalid_payload")
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "invalid_payload",
        "Request payload failed validation",
        {"errors": errors},
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(
            request,
            status.HTTP_404_NOT_FOUND,
            "route_not_found",
            f"No route for {request.method} {request.url.path}",
        )
    return error_response(request, exc.status_code, "http_error", str(exc.detail))


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error rid={_request_id(request)}")
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "Internal server error",
    )


def create_app(ApplicationConfig) -> FastAPI:
    app = FastAPI(title="HERA Gateway", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    log_requests = ApplicationConfig.ENABLE_LOGGING_MIDDLEWARE

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.rid = rid
        started = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - started
        response.headers[REQUEST_ID_HEADER] = rid
        route = request.scope.get("route")
        route_path = getattr(route, "path", "unmatched")
        record_http_request(request.method, route_path, response.status_code, duration)
        if log_requests:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"{duration * 1000:.1f}ms rid={rid}"
            )
        return response

    from hera_gateway.api.routes import command, entities, health_check, metrics, transactions

    prefix = ApplicationConfig.API_PREFIX
    app.include_router(health_check.router, tags=["Health"])
    app.include_router(metrics.router, tags=["Observability"])
    app.include_router(entities.router, prefix=prefix, tags=["Entities"])
    app.include_router(transactions.router, prefix=prefix, tags=["Transactions"])
    app.include_router(command.router, prefix=prefix, tags=["Command"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    return app
