"""
GraphQL queries for the Shopify Admin API, organized by domain.

Structure:
- core: Common queries used across domains
- metaobjects: Pet profile metaobject operations
- customers: Customer pet index metafield operations
"""

from .core import *  # noqa: F403
from .customers import *  # noqa: F403
from .metaobjects import *  # noqa: F403

__all__ = [
    # Core queries
    "SHOP_INFO_QUERY",  # noqa: F405
    # Metaobject operations
    "CREATE_METAOBJECT_MUTATION",  # noqa: F405
    "METAOBJECT_BY_ID_QUERY",  # noqa: F405
    "DELETE_METAOBJECT_MUTATION",  # noqa: F405
    # Customer pet index operations
    "CUSTOMER_PET_INDEX_QUERY",  # noqa: F405
    "SET_CUSTOMER_METAFIELDS_MUTATION",  # noqa: F405
]
