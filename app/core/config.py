"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
de la aplicación usando Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from app.version import get_version


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "Pet Profile Proxy"
    APP_VERSION: str = Field(default_factory=get_version)
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)
    WORKERS: int = Field(default=1)
    LOG_LEVEL: str = Field(default="INFO")

    # === CONFIGURACIÓN DE SEGURIDAD ===
    # Orígenes del storefront (CORS), separados por comas; vacío = "*"
    ALLOWED_ORIGINS: str = Field(default="")
    ENABLE_DOCS: bool = Field(default=True)

    # === CONFIGURACIÓN DE SHOPIFY ===
    SHOPIFY_SHOP_URL: str = Field(default="your-shop.myshopify.com")
    SHOPIFY_ACCESS_TOKEN: str = Field(default="your-access-token")
    SHOPIFY_API_VERSION: str = Field(default="2025-04")
    SHOPIFY_REQUEST_TIMEOUT_SECONDS: int = Field(default=30)
    # Intentos por query; 1 = sin reintentos
    SHOPIFY_MAX_RETRIES: int = Field(default=1)
    SHOPIFY_MIN_REQUEST_INTERVAL: float = Field(default=0.0)
    SHOPIFY_VERIFY_ON_STARTUP: bool = Field(default=False)

    # === CONFIGURACIÓN DE PERFILES DE MASCOTAS ===
    APP_PROXY_PREFIX: str = Field(default="/apps/pet-profile")
    PET_METAOBJECT_TYPE: str = Field(default="pet_profile")
    PET_METAFIELD_NAMESPACE: str = Field(default="custom")
    PET_METAFIELD_KEY: str = Field(default="pets")
    PET_INDEX_COMPARE_AND_SET: bool = Field(default=False)
    PET_INDEX_MAX_CAS_ATTEMPTS: int = Field(default=3)
    PET_IMAGE_MAX_BYTES: int = Field(default=512 * 1024)

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_FILE_PATH: Optional[str] = Field(default=None)
    LOG_MAX_SIZE_MB: int = Field(default=10)
    LOG_BACKUP_COUNT: int = Field(default=5)
    SLOW_REQUEST_THRESHOLD: float = Field(default=5.0)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("SHOPIFY_SHOP_URL")
    @classmethod
    def validate_shopify_url(cls, v):
        """Valida que la URL de Shopify tenga el formato correcto."""
        # Skip validation for default/placeholder values
        if v in ["your-shop.myshopify.com"]:
            return v
        host = v.replace("https://", "").replace("http://", "").rstrip("/")
        if not host.endswith(".myshopify.com"):
            raise ValueError("SHOPIFY_SHOP_URL debe terminar en .myshopify.com")
        return host

    @field_validator("APP_PROXY_PREFIX")
    @classmethod
    def validate_app_proxy_prefix(cls, v):
        """Normaliza el prefijo del app proxy a '/segmento' sin barra final."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = f"/{v}"
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @field_validator("SHOPIFY_MAX_RETRIES", "PET_INDEX_MAX_CAS_ATTEMPTS")
    @classmethod
    def validate_attempts(cls, v):
        """Al menos un intento."""
        if v < 1:
            raise ValueError("El número de intentos debe ser >= 1")
        return v

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parsea ALLOWED_ORIGINS como lista separada por comas."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def shopify_graphql_url(self) -> str:
        """Genera URL del endpoint GraphQL de la Admin API de Shopify."""
        return f"https://{self.SHOPIFY_SHOP_URL}/admin/api/{self.SHOPIFY_API_VERSION}/graphql.json"

    def get_shopify_headers(self) -> dict:
        """
        Obtiene headers para requests a Shopify.

        Returns:
            dict: Headers de autenticación
        """
        return {
            "X-Shopify-Access-Token": self.SHOPIFY_ACCESS_TOKEN,
            "Content-Type": "application/json",
            "User-Agent": f"{self.APP_NAME}/{self.APP_VERSION}",
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


# Instancia global para uso directo
settings = get_settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()


def validate_required_settings() -> bool:
    """
    Valida que todas las configuraciones requeridas estén presentes.

    Returns:
        bool: True si todas las configuraciones están presentes

    Raises:
        ValueError: Si alguna configuración requerida falta
    """
    settings = get_settings()

    required_fields = ["SHOPIFY_SHOP_URL", "SHOPIFY_ACCESS_TOKEN"]

    missing_fields = []
    for field in required_fields:
        value = getattr(settings, field, None)
        if not value or (isinstance(value, str) and not value.strip()):
            missing_fields.append(field)

    if missing_fields:
        raise ValueError(f"Configuraciones requeridas faltantes: {missing_fields}")

    return True
