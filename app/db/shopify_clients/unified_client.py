"""
Unified Shopify GraphQL client that combines all specialized clients.

This module provides a single interface whose specialized clients share one
HTTP session and configuration.
"""

import logging

from .base_client import BaseShopifyGraphQLClient
from .customer_client import ShopifyCustomerClient
from .metaobject_client import ShopifyMetaobjectClient

logger = logging.getLogger(__name__)


class ShopifyGraphQLClient(BaseShopifyGraphQLClient):
    """
    Unified Shopify GraphQL client.

    Exposes ``metaobjects`` and ``customers`` specialized clients.
    """

    def __init__(self, settings=None):
        """Initialize the unified client with all specialized clients."""
        super().__init__(settings)

        self.metaobjects = ShopifyMetaobjectClient(self.settings)
        self.customers = ShopifyCustomerClient(self.settings)

    @property
    def _specialized_clients(self):
        return [self.metaobjects, self.customers]

    async def initialize(self, verify_connection: bool = False):
        """
        Initialize the unified client and share its session with the specialized clients.
        """
        await super().initialize(verify_connection=verify_connection)

        for client in self._specialized_clients:
            client.session = self.session

        logger.info("✅ Unified Shopify GraphQL client initialized with all specialized clients")

    async def close(self):
        """Close the unified client and all specialized clients."""
        # The specialized clients share the same session, so we only need to close once
        await super().close()

        for client in self._specialized_clients:
            client.session = None
