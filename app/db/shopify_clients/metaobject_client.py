"""
Shopify GraphQL client for metaobject operations.

This module handles the pet profile metaobjects: creation from a list of
fields, lookup by ID, and deletion.
"""

import logging
from typing import Any, Dict, List, Optional

from app.db.queries import (
    CREATE_METAOBJECT_MUTATION,
    DELETE_METAOBJECT_MUTATION,
    METAOBJECT_BY_ID_QUERY,
)
from app.utils.error_handler import ErrorCode, ShopifyAPIException

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)


class ShopifyMetaobjectClient(BaseShopifyGraphQLClient):
    """
    Specialized client for Shopify metaobject operations.
    """

    async def create_metaobject(self, metaobject_type: str, fields: List[Dict[str, str]]) -> Dict[str, Any]:
        """
        Create a metaobject.

        Args:
            metaobject_type: Metaobject definition type (e.g. ``pet_profile``)
            fields: List of ``{"key": ..., "value": ...}`` dicts

        Returns:
            Created metaobject dict (id, handle, type, fields)

        Raises:
            ShopifyUserErrorException: If Shopify rejects the fields
            ShopifyAPIException: If the request fails
        """
        variables = {"metaobject": {"type": metaobject_type, "fields": fields}}
        data = await self._execute_query(CREATE_METAOBJECT_MUTATION, variables, operation="metaobjectCreate")

        result = self._require_payload(data, "metaobjectCreate", "metaobjectCreate")
        self._handle_user_errors(result, "metaobjectCreate")

        metaobject = result.get("metaobject")
        if not metaobject or not metaobject.get("id"):
            raise ShopifyAPIException(
                "Unexpected response shape for metaobjectCreate: missing metaobject",
                endpoint="metaobjectCreate",
                error_code=ErrorCode.SHOPIFY_UNEXPECTED_RESPONSE,
            )

        logger.info(f"✅ Metaobject created: {metaobject['id']}")
        return metaobject

    async def get_metaobject(self, metaobject_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a metaobject by its ID.

        Args:
            metaobject_id: Metaobject GID

        Returns:
            Metaobject dict or None if not found
        """
        data = await self._execute_query(METAOBJECT_BY_ID_QUERY, {"id": metaobject_id}, operation="metaobject")

        metaobject = data.get("metaobject")
        if not metaobject:
            logger.info(f"No metaobject found with ID: {metaobject_id}")
            return None

        return metaobject

    async def delete_metaobject(self, metaobject_id: str) -> str:
        """
        Delete a metaobject.

        Args:
            metaobject_id: Metaobject GID

        Returns:
            The deleted ID reported by Shopify

        Raises:
            ShopifyUserErrorException: If Shopify rejects the deletion
            ShopifyAPIException: If the request fails
        """
        data = await self._execute_query(DELETE_METAOBJECT_MUTATION, {"id": metaobject_id}, operation="metaobjectDelete")

        result = self._require_payload(data, "metaobjectDelete", "metaobjectDelete")
        self._handle_user_errors(result, "metaobjectDelete")

        deleted_id = result.get("deletedId") or metaobject_id
        logger.info(f"🗑️ Metaobject deleted: {deleted_id}")
        return deleted_id
