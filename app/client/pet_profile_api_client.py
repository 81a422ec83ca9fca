"""
Async HTTP client for the pet profile service.

Used by storefront-side Python consumers (workers, tests, scripts) that need
the create/list/delete operations with a cached fallback for listing.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.client.pet_profile_cache import PetProfileCache

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class PetProfileApiError(RuntimeError):
    """Error response (or unusable response) from the pet profile service."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code


@dataclass
class PetListResult:
    """Pets returned by ``list_pets``; ``from_cache`` is set when the service was unavailable."""

    customer_id: str
    pets: List[Dict[str, Any]] = field(default_factory=list)
    from_cache: bool = False


class PetProfileApiClient:
    """
    Client for ``/create``, ``/list`` and ``/delete`` with an injected cache.

    Args:
        base_url: Service base URL, including the app proxy prefix if any
        cache: Cache refreshed by list calls and invalidated by writes
        http_client: Optional ``httpx.AsyncClient`` (owned by the caller)
        timeout: Request timeout in seconds when the client creates its own ``httpx.AsyncClient``
    """

    def __init__(
        self,
        base_url: str,
        cache: Optional[PetProfileCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else PetProfileCache()
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def create_pet(
        self,
        customer_id: str,
        pet_data: Dict[str, Any],
        image: Optional[bytes] = None,
        image_content_type: str = "image/jpeg",
        image_filename: str = "pet.jpg",
    ) -> Dict[str, Any]:
        """
        Create a pet profile.

        Sends JSON, or multipart when an image is given.

        Returns:
            Response body (``success``, ``metaobject_id``, ``pet_data``)
        """
        url = f"{self.base_url}/create"
        if image is None:
            response = await self._send("POST", url, json={"customer_id": customer_id, "pet_data": pet_data})
        else:
            response = await self._send(
                "POST",
                url,
                data={"customer_id": str(customer_id), "pet_data": json.dumps(pet_data)},
                files={"pet_image": (image_filename, image, image_content_type)},
            )

        body = self._parse(response)
        self.cache.invalidate(customer_id)
        logger.info(f"✅ Pet created for customer {customer_id}: {body.get('metaobject_id')}")
        return body

    async def list_pets(self, customer_id: str) -> PetListResult:
        """
        List a customer's pets and refresh the cache.

        When the service is unreachable or answers 5xx, cached pets are returned
        with ``from_cache=True`` (an empty list if nothing is cached). 4xx
        responses are raised.
        """
        try:
            response = await self._send("GET", f"{self.base_url}/list", params={"customer_id": customer_id})
        except PetProfileApiError as e:
            return self._cached_result(customer_id, e)

        if response.status_code >= 500:
            return self._cached_result(customer_id, self._error_from(response))

        body = self._parse(response)
        pets = body.get("pets")
        if not isinstance(pets, list):
            raise PetProfileApiError("Unexpected list response: missing pets", status_code=response.status_code)

        self.cache.replace(customer_id, pets)
        return PetListResult(customer_id=customer_id, pets=pets)

    async def delete_pet(self, pet_id: str, customer_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Delete a pet profile and drop it from the cache.

        Returns:
            Response body (``success``, ``deleted_id``)
        """
        response = await self._send("DELETE", f"{self.base_url}/delete/{quote(str(pet_id), safe='')}")
        body = self._parse(response)

        self.cache.remove_pet(pet_id)
        if customer_id is not None:
            self.cache.invalidate(customer_id)

        logger.info(f"🗑️ Pet deleted: {body.get('deleted_id', pet_id)}")
        return body

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self.http_client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise PetProfileApiError(f"Network error while calling pet profile service: {e}") from e

    def _parse(self, response: httpx.Response) -> Dict[str, Any]:
        if response.status_code >= 400:
            raise self._error_from(response)

        try:
            body = response.json()
        except ValueError as e:
            raise PetProfileApiError("Pet profile service returned invalid JSON", response.status_code) from e

        if not isinstance(body, dict):
            raise PetProfileApiError("Pet profile service response must be a JSON object", response.status_code)
        return body

    @staticmethod
    def _error_from(response: httpx.Response) -> PetProfileApiError:
        message = f"Pet profile service error ({response.status_code})"
        error_code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or message
            error_code = body.get("error_code")
        return PetProfileApiError(message, status_code=response.status_code, error_code=error_code)

    def _cached_result(self, customer_id: str, error: PetProfileApiError) -> PetListResult:
        cached = self.cache.get(customer_id)
        logger.warning(
            f"⚠️ Pet profile service unavailable ({error.message}), "
            f"loading {len(cached or [])} pets from cache for customer {customer_id}"
        )
        return PetListResult(customer_id=customer_id, pets=cached or [], from_cache=True)
