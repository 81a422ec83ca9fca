"""
In-memory cache of customer pet lists for API consumers.

The cache is advisory: it is refreshed from successful list calls and
consulted only when the service cannot be reached. Nothing written to it is
ever sent back to the service.
"""

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from app.utils.id_utils import graphql_to_rest_id

logger = logging.getLogger(__name__)

# Listener signature: (event, customer_id); customer_id is None for a full invalidation
CacheListener = Callable[[str, Optional[str]], None]


class PetProfileCache:
    """
    Pet lists keyed by customer ID, with change listeners.

    Customer IDs are stored in numeric form, so ``"123"`` and
    ``"gid://shopify/Customer/123"`` share one entry.
    """

    EVENT_REPLACED = "replaced"
    EVENT_ADDED = "added"
    EVENT_REMOVED = "removed"
    EVENT_INVALIDATED = "invalidated"

    def __init__(self):
        self._entries: Dict[str, List[Dict[str, Any]]] = {}
        self._listeners: List[CacheListener] = []
        self._lock = threading.RLock()

    @staticmethod
    def _key(customer_id: str) -> str:
        return graphql_to_rest_id(str(customer_id).strip())

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        """
        Register a listener notified on every cache change.

        Returns:
            Function that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def get(self, customer_id: str) -> Optional[List[Dict[str, Any]]]:
        """Cached pets for a customer (a copy), or None if nothing is cached."""
        with self._lock:
            pets = self._entries.get(self._key(customer_id))
            return copy.deepcopy(pets) if pets is not None else None

    def replace(self, customer_id: str, pets: List[Dict[str, Any]]) -> None:
        """Replace a customer's cached pets with a fresh list from the service."""
        key = self._key(customer_id)
        with self._lock:
            self._entries[key] = copy.deepcopy(pets)
        logger.debug(f"💾 Cached {len(pets)} pets for customer {key}")
        self._notify(self.EVENT_REPLACED, key)

    def add(self, customer_id: str, pet: Dict[str, Any]) -> None:
        """Append a pet to a customer's cached list, replacing any entry with the same ID."""
        key = self._key(customer_id)
        with self._lock:
            pets = [cached for cached in self._entries.get(key, []) if cached.get("id") != pet.get("id")]
            pets.append(copy.deepcopy(pet))
            self._entries[key] = pets
        self._notify(self.EVENT_ADDED, key)

    def remove_pet(self, pet_id: str) -> List[str]:
        """
        Remove a pet from every cached list.

        Returns:
            Customer IDs whose cached list changed
        """
        pet_key = graphql_to_rest_id(str(pet_id))
        affected = []
        with self._lock:
            for key, pets in self._entries.items():
                remaining = [pet for pet in pets if graphql_to_rest_id(str(pet.get("id", ""))) != pet_key]
                if len(remaining) != len(pets):
                    self._entries[key] = remaining
                    affected.append(key)

        for key in affected:
            self._notify(self.EVENT_REMOVED, key)
        return affected

    def invalidate(self, customer_id: Optional[str] = None) -> None:
        """Drop one customer's entry, or every entry when no customer is given."""
        key = self._key(customer_id) if customer_id is not None else None
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
        logger.debug(f"🗑️ Cache invalidated for {key or 'all customers'}")
        self._notify(self.EVENT_INVALIDATED, key)

    def _notify(self, event: str, customer_id: Optional[str]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event, customer_id)
