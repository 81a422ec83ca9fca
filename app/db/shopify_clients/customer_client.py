"""
Shopify GraphQL client for customer pet index operations.

The pet index is a ``list.metaobject_reference`` metafield on the customer
holding the GIDs of the customer's pet profile metaobjects, in creation order.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from app.db.queries import CUSTOMER_PET_INDEX_QUERY, SET_CUSTOMER_METAFIELDS_MUTATION

from .base_client import BaseShopifyGraphQLClient

logger = logging.getLogger(__name__)

PET_INDEX_METAFIELD_TYPE = "list.metaobject_reference"

# userErrors code returned by metafieldsSet when compareDigest no longer matches
STALE_OBJECT_CODE = "STALE_OBJECT"


@dataclass
class PetIndex:
    """Snapshot of a customer's pet index as read from Shopify."""

    customer_id: str
    pet_ids: List[str] = field(default_factory=list)
    compare_digest: Optional[str] = None
    metafield_id: Optional[str] = None


def parse_pet_ids(raw_value: Optional[str]) -> List[str]:
    """
    Parse the metafield value into a list of metaobject GIDs.

    Malformed values are logged and read as an empty index.
    """
    if not raw_value:
        return []

    try:
        parsed = json.loads(raw_value)
    except ValueError:
        logger.warning(f"⚠️ Malformed pet index value, ignoring: {raw_value[:100]}")
        return []

    if not isinstance(parsed, list):
        logger.warning(f"⚠️ Pet index value is not a list, ignoring: {raw_value[:100]}")
        return []

    return [pet_id for pet_id in parsed if isinstance(pet_id, str) and pet_id]


class ShopifyCustomerClient(BaseShopifyGraphQLClient):
    """
    Specialized client for the customer pet index metafield.
    """

    @property
    def namespace(self) -> str:
        return self.settings.PET_METAFIELD_NAMESPACE

    @property
    def key(self) -> str:
        return self.settings.PET_METAFIELD_KEY

    async def get_pet_index(self, customer_id: str) -> Optional[PetIndex]:
        """
        Read a customer's pet index.

        Args:
            customer_id: Customer GID

        Returns:
            PetIndex (empty if the metafield is not set) or None if the customer does not exist
        """
        variables = {"id": customer_id, "namespace": self.namespace, "key": self.key}
        data = await self._execute_query(CUSTOMER_PET_INDEX_QUERY, variables, operation="customerPets")

        customer = data.get("customer")
        if not customer:
            logger.info(f"No customer found with ID: {customer_id}")
            return None

        metafield = customer.get("metafield")
        if not metafield:
            return PetIndex(customer_id=customer_id)

        return PetIndex(
            customer_id=customer_id,
            pet_ids=parse_pet_ids(metafield.get("value")),
            compare_digest=metafield.get("compareDigest"),
            metafield_id=metafield.get("id"),
        )

    async def set_pet_index(
        self,
        customer_id: str,
        pet_ids: List[str],
        conditional: bool = False,
        compare_digest: Optional[str] = None,
    ) -> Optional[str]:
        """
        Write a customer's pet index.

        Args:
            customer_id: Customer GID
            pet_ids: Full list of pet metaobject GIDs to store
            conditional: Send ``compareDigest`` so the write fails if the index changed
            compare_digest: Digest read with the index; None means "must not exist yet"

        Returns:
            The new compare digest reported by Shopify, if any

        Raises:
            ShopifyUserErrorException: If Shopify rejects the write (``STALE_OBJECT`` on conflict)
            ShopifyAPIException: If the request fails
        """
        metafield_input = {
            "ownerId": customer_id,
            "namespace": self.namespace,
            "key": self.key,
            "type": PET_INDEX_METAFIELD_TYPE,
            "value": json.dumps(pet_ids),
        }
        if conditional:
            metafield_input["compareDigest"] = compare_digest

        data = await self._execute_query(
            SET_CUSTOMER_METAFIELDS_MUTATION, {"metafields": [metafield_input]}, operation="metafieldsSet"
        )

        result = self._require_payload(data, "metafieldsSet", "metafieldsSet")
        self._handle_user_errors(result, "metafieldsSet")

        metafields = result.get("metafields") or []
        logger.info(f"✅ Pet index updated for {customer_id} ({len(pet_ids)} pets)")
        return metafields[0].get("compareDigest") if metafields else None
