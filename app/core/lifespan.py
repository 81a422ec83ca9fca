"""
Gestión del ciclo de vida de la aplicación FastAPI.

Este módulo maneja los eventos de startup y shutdown de la aplicación:
configuración de logging, verificación de configuración y el cliente
GraphQL de Shopify compartido por todas las requests.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI

from app.core.config import get_settings, validate_required_settings
from app.core.logging_config import setup_logging
from app.db.shopify_clients import ShopifyGraphQLClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.
    Maneja eventos de startup y shutdown de manera ordenada.

    Args:
        app: Instancia de FastAPI
    """
    settings = get_settings()

    # === STARTUP ===
    startup_configure_logging()
    logger.info(f"🚀 Iniciando {settings.APP_NAME} v{settings.APP_VERSION}...")

    try:
        # 1. Verificar configuración
        startup_verify_configuration()

        # 2. Inicializar cliente de Shopify
        app.state.shopify_client = await startup_initialize_shopify_client()
        app.state.started_at = datetime.now(timezone.utc)

        logger.info("🎉 Aplicación iniciada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el startup: {e}")
        await shutdown_close_connections(app)
        raise

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")
    await shutdown_close_connections(app)
    logger.info("👋 Aplicación cerrada correctamente")


# === FUNCIONES DE STARTUP ===


def startup_configure_logging():
    """Configura el sistema de logging."""
    setup_logging()
    logger.info("✅ Sistema de logging configurado")


def startup_verify_configuration():
    """Verifica que la configuración sea válida."""
    validate_required_settings()

    settings = get_settings()
    if settings.SHOPIFY_SHOP_URL == "your-shop.myshopify.com":
        logger.warning("⚠️ SHOPIFY_SHOP_URL no configurado, usando valor por defecto")

    logger.info(
        f"✅ Configuración verificada - Shop: {settings.SHOPIFY_SHOP_URL} - "
        f"API: {settings.SHOPIFY_API_VERSION} - "
        f"Proxy prefix: {settings.APP_PROXY_PREFIX}"
    )


async def startup_initialize_shopify_client() -> ShopifyGraphQLClient:
    """
    Crea e inicializa el cliente GraphQL de Shopify.

    Con SHOPIFY_VERIFY_ON_STARTUP se verifica la conexión antes de aceptar requests.
    """
    settings = get_settings()
    client = ShopifyGraphQLClient(settings)
    await client.initialize(verify_connection=settings.SHOPIFY_VERIFY_ON_STARTUP)
    logger.info("✅ Cliente de Shopify inicializado")
    return client


# === FUNCIONES DE SHUTDOWN ===


async def shutdown_close_connections(app: FastAPI):
    """Cierra el cliente de Shopify si fue creado."""
    client = getattr(app.state, "shopify_client", None)
    if client is None:
        return

    try:
        await client.close()
        logger.info("✅ Cliente de Shopify cerrado")
    except Exception as e:
        logger.error(f"❌ Error cerrando cliente de Shopify: {e}")
    finally:
        app.state.shopify_client = None


def get_startup_info(app: FastAPI) -> Dict[str, Any]:
    """
    Información de startup para el endpoint raíz.

    Args:
        app: Instancia de FastAPI

    Returns:
        Dict con estado del cliente y hora de inicio
    """
    started_at = getattr(app.state, "started_at", None)
    return {
        "started_at": started_at.isoformat() if started_at else None,
        "shopify_client_ready": getattr(app.state, "shopify_client", None) is not None,
    }
