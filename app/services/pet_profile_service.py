"""
Pet Profile Service: storefront pet profiles ⇄ Shopify metaobjects.

This service translates the three storefront operations into Shopify Admin
GraphQL calls:
1. Create: metaobjectCreate, then append the new ID to the customer pet index
2. List: read the customer pet index, then fetch every metaobject by ID
3. Delete: metaobjectDelete (the customer pet index is left untouched)
"""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.api.v1.schemas.pet_schemas import PetData, PetProfile
from app.core.config import get_settings
from app.db.shopify_clients.customer_client import STALE_OBJECT_CODE, PetIndex
from app.utils.error_handler import (
    ErrorCode,
    PetIndexConflictException,
    ShopifyAPIException,
    ShopifyUserErrorException,
    ValidationException,
)
from app.utils.id_utils import graphql_to_rest_id, normalize_customer_id, normalize_metaobject_id

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}


def _decode_allergies(raw_value: Optional[str]) -> List[str]:
    """Decode the JSON-encoded allergies field; malformed values read as no allergies."""
    if not raw_value:
        return []
    try:
        parsed = json.loads(raw_value)
    except ValueError:
        return []
    if not isinstance(parsed, list):
        return []
    return [str(item) for item in parsed if item]


@dataclass
class PetImage:
    """Image uploaded with a pet profile (multipart ``pet_image`` part)."""

    content: bytes
    content_type: str
    filename: Optional[str] = None


class PetProfileService:
    """
    Creates, lists and deletes customer pet profiles stored as Shopify metaobjects.
    """

    def __init__(self, shopify_client, settings=None):
        """
        Initialize the pet profile service.

        Args:
            shopify_client: Unified Shopify GraphQL client (``metaobjects`` and ``customers``)
            settings: Application settings (defaults to the global settings)
        """
        self.shopify_client = shopify_client
        self.settings = settings or get_settings()

    async def create_pet_profile(
        self,
        customer_id: str,
        pet_data: PetData,
        image: Optional[PetImage] = None,
    ) -> Dict[str, Any]:
        """
        Create a pet profile metaobject and link it to the customer.

        Args:
            customer_id: Customer ID (numeric or GID)
            pet_data: Validated pet data
            image: Optional uploaded image, stored as a data URI

        Returns:
            Dict with ``metaobject_id`` and the stored ``pet_data``

        Raises:
            ValidationException: Missing customer, or invalid image
            ShopifyUserErrorException: Shopify rejected the metaobject or the index write
            PetIndexConflictException: Conditional index write kept conflicting
        """
        if not customer_id or not str(customer_id).strip():
            raise ValidationException(
                "customer_id is required",
                field="customer_id",
                error_code=ErrorCode.MISSING_REQUIRED_FIELD,
            )

        customer_gid = normalize_customer_id(customer_id)

        if image is not None:
            pet_data = pet_data.model_copy(update={"image_url": self.image_to_data_uri(image)})

        index = await self._get_existing_pet_index(customer_gid)

        logger.info(f"🐾 Creating pet profile '{pet_data.name}' for customer {customer_gid}")

        metaobject = await self.shopify_client.metaobjects.create_metaobject(
            self.settings.PET_METAOBJECT_TYPE, pet_data.to_metaobject_fields()
        )
        metaobject_id = metaobject["id"]

        try:
            await self.link_pet_to_customer(customer_gid, metaobject_id, index=index)
        except (PetIndexConflictException, ValidationException):
            await self._discard_metaobject(metaobject_id)
            raise

        logger.info(f"✅ Pet profile created: {metaobject_id}")
        return {"metaobject_id": metaobject_id, "pet_data": pet_data.to_public_dict()}

    async def link_pet_to_customer(
        self, customer_gid: str, pet_id: str, index: Optional[PetIndex] = None
    ) -> List[str]:
        """
        Append a pet ID to the customer's pet index.

        Without ``PET_INDEX_COMPARE_AND_SET`` this is a plain read-then-write:
        two concurrent creates for the same customer can lose one entry.
        With it, the write carries the digest that was read and a stale digest
        triggers a fresh read and append.

        Args:
            customer_gid: Customer GID
            pet_id: Pet metaobject GID to append
            index: Index already read for this customer, used for the first attempt

        Returns:
            The pet index as written
        """
        conditional = self.settings.PET_INDEX_COMPARE_AND_SET
        attempts = self.settings.PET_INDEX_MAX_CAS_ATTEMPTS if conditional else 1

        for attempt in range(1, attempts + 1):
            if index is None:
                index = await self._get_existing_pet_index(customer_gid)

            pet_ids = list(index.pet_ids)
            if pet_id not in pet_ids:
                pet_ids.append(pet_id)

            try:
                await self.shopify_client.customers.set_pet_index(
                    customer_gid,
                    pet_ids,
                    conditional=conditional,
                    compare_digest=index.compare_digest,
                )
                logger.info(f"🔗 Linked pet {pet_id} to customer {customer_gid}")
                return pet_ids

            except ShopifyUserErrorException as e:
                if not conditional or STALE_OBJECT_CODE not in e.codes:
                    raise
                logger.warning(
                    f"⚠️ Pet index for {customer_gid} changed concurrently (attempt {attempt}/{attempts})"
                )
                index = None

        raise PetIndexConflictException(customer_gid, attempts)

    async def _get_existing_pet_index(self, customer_gid: str) -> PetIndex:
        """Read the customer's pet index, failing when the customer does not exist."""
        index = await self.shopify_client.customers.get_pet_index(customer_gid)
        if index is None:
            raise ValidationException(
                "Customer not found",
                field="customer_id",
                invalid_value=customer_gid,
            )
        return index

    async def _discard_metaobject(self, metaobject_id: str) -> None:
        """Delete a metaobject that could not be linked to its customer."""
        try:
            await self.shopify_client.metaobjects.delete_metaobject(metaobject_id)
            logger.info(f"🧹 Discarded unlinked pet profile {metaobject_id}")
        except (ShopifyAPIException, ShopifyUserErrorException) as e:
            logger.error(f"❌ Could not discard unlinked pet profile {metaobject_id}: {e}")

    async def list_pet_profiles(self, customer_id: str) -> List[Dict[str, Any]]:
        """
        List a customer's pet profiles in index order.

        IDs that no longer resolve (deleted metaobjects) or fail to fetch are dropped.

        Args:
            customer_id: Customer ID (numeric or GID)

        Returns:
            List of pet dicts
        """
        if not customer_id or not str(customer_id).strip():
            raise ValidationException(
                "customer_id is required",
                field="customer_id",
                error_code=ErrorCode.MISSING_REQUIRED_FIELD,
            )

        customer_gid = normalize_customer_id(customer_id)
        index = await self.shopify_client.customers.get_pet_index(customer_gid)

        if index is None or not index.pet_ids:
            logger.info(f"No pets found for customer {customer_gid}")
            return []

        pet_ids = list(dict.fromkeys(index.pet_ids))
        owner_id = graphql_to_rest_id(customer_gid)

        results = await asyncio.gather(*(self._fetch_pet(pet_id, owner_id) for pet_id in pet_ids))
        pets = [pet for pet in results if pet is not None]

        dropped = len(pet_ids) - len(pets)
        if dropped:
            logger.info(f"Dropped {dropped} unresolved pet reference(s) for customer {customer_gid}")

        logger.info(f"✅ Found {len(pets)} pets for customer {customer_gid}")
        return pets

    async def delete_pet_profile(self, pet_id: str) -> str:
        """
        Delete a pet profile metaobject.

        Args:
            pet_id: Pet metaobject ID (numeric or GID)

        Returns:
            The deleted metaobject ID
        """
        if not pet_id or not str(pet_id).strip():
            raise ValidationException(
                "pet_id is required",
                field="pet_id",
                error_code=ErrorCode.MISSING_REQUIRED_FIELD,
            )

        metaobject_id = normalize_metaobject_id(pet_id)
        logger.info(f"🗑️ Deleting pet: {metaobject_id}")

        return await self.shopify_client.metaobjects.delete_metaobject(metaobject_id)

    async def _fetch_pet(self, pet_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one pet, returning None when it cannot be resolved."""
        try:
            metaobject = await self.shopify_client.metaobjects.get_metaobject(pet_id)
        except ShopifyAPIException as e:
            logger.warning(f"⚠️ Could not fetch pet {pet_id}: {e}")
            return None

        if metaobject is None:
            return None

        metaobject_type = metaobject.get("type")
        if metaobject_type and metaobject_type != self.settings.PET_METAOBJECT_TYPE:
            logger.warning(f"⚠️ Skipping {pet_id}: metaobject type '{metaobject_type}' is not a pet profile")
            return None

        return self.metaobject_to_pet(metaobject, owner_id)

    @staticmethod
    def metaobject_to_pet(metaobject: Dict[str, Any], customer_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Convert a metaobject's field list into a pet dict.

        ``allergies`` is decoded from its JSON string, ``health_boost`` is
        exposed as ``healthBoost``, other keys are passed through.
        """
        values: Dict[str, Any] = {"id": metaobject["id"], "handle": metaobject.get("handle")}

        for metaobject_field in metaobject.get("fields") or []:
            key = metaobject_field.get("key")
            value = metaobject_field.get("value")
            if not key:
                continue
            if key == "allergies":
                values["allergies"] = _decode_allergies(value)
            elif key == "health_boost":
                values["healthBoost"] = value
            else:
                values[key] = value

        if customer_id:
            values["customer_id"] = customer_id

        return PetProfile.model_validate(values).model_dump(by_alias=True, exclude_none=True)

    def image_to_data_uri(self, image: PetImage) -> str:
        """
        Validate an uploaded image and encode it as a ``data:`` URI.

        Raises:
            ValidationException: Unsupported type, empty, or larger than PET_IMAGE_MAX_BYTES
        """
        content_type = (image.content_type or "").lower()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationException(
                "Pet image must be JPEG, PNG, WebP or GIF",
                field="pet_image",
                invalid_value=content_type,
                expected_format=", ".join(sorted(ALLOWED_IMAGE_TYPES)),
            )

        if not image.content:
            raise ValidationException("Pet image is empty", field="pet_image")

        if len(image.content) > self.settings.PET_IMAGE_MAX_BYTES:
            raise ValidationException(
                f"Pet image exceeds {self.settings.PET_IMAGE_MAX_BYTES} bytes",
                field="pet_image",
                invalid_value=len(image.content),
            )

        encoded = base64.b64encode(image.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"
