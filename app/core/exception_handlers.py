"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Todas las respuestas de error comparten el cuerpo
``{"success": false, "error": <mensaje>, ...}`` que espera el storefront.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.utils.error_handler import (
    AppException,
    ErrorCode,
    ShopifyAPIException,
    ShopifyUserErrorException,
    ValidationException,
    log_error,
)

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> Optional[str]:
    """ID de la request asignado por el middleware de logging (o enviado por el cliente)."""
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def build_error_content(
    request: Request,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Construye el cuerpo de error común.

    Args:
        request: Request de FastAPI
        message: Mensaje para el cliente
        error_code: Código de error estandardizado
        details: Detalles adicionales (solo se incluyen en modo DEBUG)

    Returns:
        Dict con el cuerpo de la respuesta
    """
    content = {
        "success": False,
        "error": message,
        "error_code": error_code,
        "path": str(request.url.path),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": get_request_id(request),
    }
    if details and get_settings().DEBUG:
        content["details"] = details
    return content


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    """
    Manejador para datos de request faltantes o inválidos.

    Args:
        request: Request de FastAPI
        exc: Excepción de validación

    Returns:
        JSONResponse: HTTP 400 con el mensaje de validación
    """
    logger.warning(
        f"Validation Exception: {exc.message} - "
        f"Field: {exc.field} - "
        f"Value: {exc.invalid_value} - "
        f"URL: {request.url}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, exc.public_message, exc.error_code.value, exc.details),
    )


async def shopify_user_error_handler(request: Request, exc: ShopifyUserErrorException) -> JSONResponse:
    """
    Manejador para mutaciones rechazadas por Shopify.

    Args:
        request: Request de FastAPI
        exc: Excepción con los userErrors de Shopify

    Returns:
        JSONResponse: HTTP 400 con el primer mensaje de Shopify
    """
    logger.warning(f"Shopify User Error: {exc.operation} - Errors: {exc.user_errors} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, exc.public_message, exc.error_code.value, exc.details),
    )


async def shopify_api_exception_handler(request: Request, exc: ShopifyAPIException) -> JSONResponse:
    """
    Manejador para fallos de comunicación con Shopify.

    El detalle real solo se expone en modo DEBUG.

    Args:
        request: Request de FastAPI
        exc: Excepción de Shopify API

    Returns:
        JSONResponse: HTTP 500 con mensaje genérico
    """
    logger.error(
        f"Shopify API Exception: {exc.message} - "
        f"API Code: {exc.api_response_code} - "
        f"Endpoint: {exc.endpoint} - "
        f"URL: {request.url}"
    )

    message = exc.message if get_settings().DEBUG else exc.public_message

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, message, exc.error_code.value, exc.details),
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para el resto de excepciones de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción personalizada de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    logger.error(
        f"App Exception: {exc.message} - "
        f"Code: {exc.error_code.value} - "
        f"URL: {request.url} - "
        f"Details: {exc.details}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, exc.public_message, exc.error_code.value, exc.details),
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Manejador para errores de validación de FastAPI (parámetros de ruta o query).

    Se reportan como HTTP 400, igual que el resto de errores de validación.
    """
    errors = exc.errors()
    first_error = errors[0] if errors else {}
    location = ".".join(str(part) for part in first_error.get("loc", ()) if part not in ("body", "query", "path"))
    message = first_error.get("msg", "Invalid request")
    if location:
        message = f"Invalid {location}: {message}"

    logger.warning(f"Request Validation Error: {message} - URL: {request.url}")

    return JSONResponse(
        status_code=400,
        content=build_error_content(request, message, ErrorCode.VALIDATION_ERROR.value),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Manejador para HTTPException estándar de FastAPI.

    Args:
        request: Request de FastAPI
        exc: HTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Manejador para HTTPException de Starlette (rutas inexistentes, métodos no permitidos).

    Args:
        request: Request de FastAPI
        exc: StarletteHTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    logger.warning(f"Starlette HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(request, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Args:
        request: Request de FastAPI
        exc: Excepción no manejada

    Returns:
        JSONResponse: Respuesta JSON de error interno
    """
    log_error(
        exc,
        context={
            "method": request.method,
            "path": request.url.path,
            "request_id": get_request_id(request),
        },
    )

    # Respuesta genérica (sin exponer detalles internos)
    error_message = "Internal server error occurred"
    if get_settings().DEBUG:
        error_message = f"{type(exc).__name__}: {str(exc)}"

    return JSONResponse(
        status_code=500,
        content=build_error_content(request, error_message, ErrorCode.UNKNOWN_ERROR.value),
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(ShopifyUserErrorException, shopify_user_error_handler)
    app.add_exception_handler(ShopifyAPIException, shopify_api_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    # Manejadores HTTP estándar
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")
