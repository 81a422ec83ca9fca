"""
Fixtures compartidos: un Shopify en memoria con metaobjects e índice de mascotas.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional

import pytest

from app.core.config import Settings
from app.db.shopify_clients.customer_client import STALE_OBJECT_CODE, PetIndex
from app.utils.error_handler import ShopifyUserErrorException


class FakeShopifyStore:
    """Estado compartido del Shopify falso."""

    def __init__(self):
        self.metaobjects: Dict[str, Dict[str, Any]] = {}
        self.customers = {"gid://shopify/Customer/123", "gid://shopify/Customer/456"}
        self.indexes: Dict[str, List[str]] = {}
        self.digests: Dict[str, str] = {}
        self.next_id = 1000
        self.digest_version = 0
        self.index_writes = 0


class FakeMetaobjectClient:
    """Imita ShopifyMetaobjectClient; cede el control en cada llamada."""

    def __init__(self, store: FakeShopifyStore):
        self.store = store

    async def create_metaobject(self, metaobject_type: str, fields: List[Dict[str, str]]) -> Dict[str, Any]:
        await asyncio.sleep(0)
        self.store.next_id += 1
        metaobject_id = f"gid://shopify/Metaobject/{self.store.next_id}"
        metaobject = {
            "id": metaobject_id,
            "handle": f"pet-profile-{self.store.next_id}",
            "type": metaobject_type,
            "fields": [dict(field) for field in fields],
        }
        self.store.metaobjects[metaobject_id] = metaobject
        return copy.deepcopy(metaobject)

    async def get_metaobject(self, metaobject_id: str) -> Optional[Dict[str, Any]]:
        await asyncio.sleep(0)
        metaobject = self.store.metaobjects.get(metaobject_id)
        return copy.deepcopy(metaobject) if metaobject else None

    async def delete_metaobject(self, metaobject_id: str) -> str:
        await asyncio.sleep(0)
        if metaobject_id not in self.store.metaobjects:
            raise ShopifyUserErrorException(
                "metaobjectDelete",
                [{"field": ["id"], "message": "Record not found", "code": "RECORD_NOT_FOUND"}],
            )
        del self.store.metaobjects[metaobject_id]
        return metaobject_id


class FakeCustomerClient:
    """Imita ShopifyCustomerClient, incluyendo compareDigest y STALE_OBJECT."""

    def __init__(self, store: FakeShopifyStore):
        self.store = store

    async def get_pet_index(self, customer_id: str) -> Optional[PetIndex]:
        if customer_id not in self.store.customers:
            await asyncio.sleep(0)
            return None

        snapshot = PetIndex(
            customer_id=customer_id,
            pet_ids=list(self.store.indexes.get(customer_id, [])),
            compare_digest=self.store.digests.get(customer_id),
            metafield_id="gid://shopify/Metafield/1" if customer_id in self.store.indexes else None,
        )
        # La lectura ocurre antes de ceder el control
        await asyncio.sleep(0)
        return snapshot

    async def set_pet_index(
        self,
        customer_id: str,
        pet_ids: List[str],
        conditional: bool = False,
        compare_digest: Optional[str] = None,
    ) -> Optional[str]:
        await asyncio.sleep(0)
        if conditional and compare_digest != self.store.digests.get(customer_id):
            raise ShopifyUserErrorException(
                "metafieldsSet",
                [
                    {
                        "field": ["metafields", "0", "compareDigest"],
                        "message": "The resource has been updated since it was loaded.",
                        "code": STALE_OBJECT_CODE,
                    }
                ],
            )

        self.store.digest_version += 1
        digest = f"digest-{self.store.digest_version}"
        self.store.indexes[customer_id] = list(pet_ids)
        self.store.digests[customer_id] = digest
        self.store.index_writes += 1
        return digest


class FakeShopifyClient:
    """Imita ShopifyGraphQLClient con sus clientes especializados."""

    def __init__(self, store: Optional[FakeShopifyStore] = None):
        self.store = store or FakeShopifyStore()
        self.metaobjects = FakeMetaobjectClient(self.store)
        self.customers = FakeCustomerClient(self.store)


@pytest.fixture
def test_settings():
    """Configuración aislada del entorno (sin .env)."""
    return Settings(_env_file=None, SHOPIFY_SHOP_URL="test-shop.myshopify.com", SHOPIFY_ACCESS_TOKEN="shpat_test")


@pytest.fixture
def cas_settings():
    """Configuración con escritura condicional del índice de mascotas."""
    return Settings(
        _env_file=None,
        SHOPIFY_SHOP_URL="test-shop.myshopify.com",
        SHOPIFY_ACCESS_TOKEN="shpat_test",
        PET_INDEX_COMPARE_AND_SET=True,
        PET_INDEX_MAX_CAS_ATTEMPTS=3,
    )


@pytest.fixture
def fake_shopify():
    """Cliente de Shopify en memoria."""
    return FakeShopifyClient()


@pytest.fixture
def buddy_data():
    """Datos de ejemplo del formulario del storefront."""
    return {"name": "Buddy", "type": "dog", "weight": "medium", "allergies": ["beef"]}
