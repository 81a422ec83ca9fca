"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones personalizadas del servicio de
perfiles de mascotas y proporciona utilidades para manejo consistente de errores.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores de Shopify
    SHOPIFY_CONNECTION_FAILED = "SHOPIFY_CONNECTION_FAILED"
    SHOPIFY_API_ERROR = "SHOPIFY_API_ERROR"
    SHOPIFY_USER_ERROR = "SHOPIFY_USER_ERROR"
    SHOPIFY_UNEXPECTED_RESPONSE = "SHOPIFY_UNEXPECTED_RESPONSE"

    # Errores del índice de mascotas
    PET_INDEX_CONFLICT = "PET_INDEX_CONFLICT"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            status_code: Código HTTP asociado
            severity: Severidad del error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.timestamp = datetime.now(timezone.utc)

    @property
    def public_message(self) -> str:
        """Mensaje que puede devolverse al cliente sin exponer detalles internos."""
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para datos de request faltantes o inválidos (HTTP 400).
    """

    def __init__(
        self,
        message: str,
        field: str,
        invalid_value: Any = None,
        expected_format: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            expected_format: Formato esperado
            error_code: Código de error (VALIDATION_ERROR o MISSING_REQUIRED_FIELD)
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.field = field
        self.invalid_value = invalid_value
        self.expected_format = expected_format

        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
                "expected_format": expected_format,
            }
        )


class ShopifyAPIException(AppException):
    """
    Excepción para fallos de comunicación con la API de Shopify.

    Cubre Shopify inalcanzable, respuestas HTTP no exitosas, errores GraphQL de
    nivel superior y respuestas con forma inesperada. Se reporta como HTTP 500
    con un mensaje genérico.
    """

    GENERIC_MESSAGE = "Error communicating with Shopify"

    def __init__(
        self,
        message: str,
        api_response_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.SHOPIFY_API_ERROR,
        **kwargs,
    ):
        """
        Inicializa la excepción de Shopify API.

        Args:
            message: Mensaje de error
            api_response_code: Código de respuesta HTTP de Shopify
            endpoint: Endpoint u operación que falló
            error_code: Código de error estandardizado
            **kwargs: Argumentos adicionales para AppException
        """
        severity = ErrorSeverity.MEDIUM
        if api_response_code and api_response_code >= 500:
            severity = ErrorSeverity.HIGH

        super().__init__(
            message=message,
            error_code=error_code,
            status_code=500,
            severity=severity,
            **kwargs,
        )

        self.api_response_code = api_response_code
        self.endpoint = endpoint

        self.details.update({"api_response_code": api_response_code, "endpoint": endpoint})

    @property
    def public_message(self) -> str:
        return self.GENERIC_MESSAGE


class ShopifyUserErrorException(AppException):
    """
    Excepción para mutaciones rechazadas por Shopify (``userErrors``).

    El mensaje del primer error se devuelve al cliente tal cual (HTTP 400).
    """

    def __init__(self, operation: str, user_errors: List[Dict[str, Any]], **kwargs):
        """
        Inicializa la excepción a partir de los userErrors de Shopify.

        Args:
            operation: Nombre de la mutación que falló
            user_errors: Lista de userErrors devuelta por Shopify
            **kwargs: Argumentos adicionales para AppException
        """
        first_message = user_errors[0].get("message") if user_errors else None
        super().__init__(
            message=first_message or f"{operation} failed",
            error_code=ErrorCode.SHOPIFY_USER_ERROR,
            status_code=400,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.operation = operation
        self.user_errors = user_errors

        self.details.update({"operation": operation, "user_errors": user_errors})

    @property
    def codes(self) -> List[str]:
        """Códigos de los userErrors (p. ej. ``STALE_OBJECT``)."""
        return [error.get("code") for error in self.user_errors if error.get("code")]


class PetIndexConflictException(AppException):
    """
    Excepción cuando la escritura condicional del índice de mascotas agota sus intentos.
    """

    def __init__(self, customer_id: str, attempts: int, **kwargs):
        super().__init__(
            message="Customer pet list was modified concurrently, please retry",
            error_code=ErrorCode.PET_INDEX_CONFLICT,
            status_code=409,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )
        self.customer_id = customer_id
        self.attempts = attempts

        self.details.update({"customer_id": customer_id, "attempts": attempts})


# === FUNCIONES DE UTILIDAD ===


def log_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    log_data = {
        "exception_type": type(exception).__name__,
        "exception_message": str(exception),
        "traceback": traceback.format_exc(),
        **context,
    }

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"

    logger.log(level, message, extra=log_data)
