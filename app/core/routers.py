"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo registra los endpoints de perfiles de mascotas en la raíz y bajo
el prefijo del app proxy de Shopify, junto con los endpoints base.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, FastAPI, Request

from app.api.v1.endpoints.pet_profiles import router as pet_profiles_router
from app.core.config import get_settings
from app.core.lifespan import get_startup_info

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])


@health_router.get("/health", summary="Health Check")
async def health_check() -> Dict[str, str]:
    """
    Health check simple: no consulta a Shopify.

    Returns:
        Dict con status ok
    """
    return {"status": "ok"}


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root(request: Request):
        """
        Endpoint raíz que proporciona información básica de la API.

        Returns:
            Dict con información de la API
        """
        settings = get_settings()
        return {
            "message": settings.APP_NAME,
            "description": "Perfiles de mascotas de clientes almacenados como metaobjects de Shopify",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "status": "running",
            "documentation": "/docs" if (settings.DEBUG or settings.ENABLE_DOCS) else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "startup": get_startup_info(request.app),
            "endpoints": get_router_info()["base_paths"],
        }


def configure_pet_profile_routers(app: FastAPI) -> None:
    """
    Monta el router de mascotas y el health check en la raíz y bajo APP_PROXY_PREFIX.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers de perfiles de mascotas...")

    for prefix in get_mount_prefixes():
        app.include_router(health_router, prefix=prefix)
        app.include_router(pet_profiles_router, prefix=prefix)
        logger.info(f"✅ Router de mascotas configurado en '{prefix or '/'}'")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando todos los routers...")

    create_root_endpoints(app)
    configure_pet_profile_routers(app)

    logger.info("✅ Todos los routers configurados correctamente")


def get_mount_prefixes() -> List[str]:
    """Prefijos donde se montan las rutas: raíz y app proxy (si está configurado)."""
    proxy_prefix = get_settings().APP_PROXY_PREFIX
    return [""] + ([proxy_prefix] if proxy_prefix else [])


def get_router_info() -> Dict[str, Any]:
    """
    Obtiene información sobre los routers configurados.

    Returns:
        Dict con información de routers
    """
    proxy_prefix = get_settings().APP_PROXY_PREFIX
    return {
        "base_paths": {
            "root": "/",
            "health": "/health",
            "create": "/create",
            "list": "/list",
            "delete": "/delete/{pet_id}",
            "options": "/options",
        },
        "app_proxy_prefix": proxy_prefix,
    }
