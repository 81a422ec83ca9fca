"""
Shopify GraphQL clients organized by responsibility.

This module contains specialized GraphQL clients for different Shopify resources,
following the single responsibility principle.
"""

from .base_client import BaseShopifyGraphQLClient
from .customer_client import PetIndex, ShopifyCustomerClient
from .metaobject_client import ShopifyMetaobjectClient
from .unified_client import ShopifyGraphQLClient

__all__ = [
    "BaseShopifyGraphQLClient",
    "ShopifyMetaobjectClient",
    "ShopifyCustomerClient",
    "ShopifyGraphQLClient",
    "PetIndex",
]
