"""
Módulo de acceso a Shopify para el servicio de perfiles de mascotas.

- shopify_clients: Clientes GraphQL de la Admin API (metaobjects y clientes)
- queries: Queries y mutations GraphQL
"""

from app.db.shopify_clients import ShopifyGraphQLClient

__all__ = ["ShopifyGraphQLClient"]
