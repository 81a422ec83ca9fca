"""
Cliente Python del servicio de perfiles de mascotas con cache inyectable.
"""

from app.client.pet_profile_api_client import PetListResult, PetProfileApiClient, PetProfileApiError
from app.client.pet_profile_cache import PetProfileCache

__all__ = ["PetProfileApiClient", "PetProfileApiError", "PetListResult", "PetProfileCache"]
