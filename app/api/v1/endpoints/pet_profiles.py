"""
API endpoints para perfiles de mascotas del storefront.

Rutas montadas en la raíz y bajo el prefijo del app proxy de Shopify
(por defecto ``/apps/pet-profile``).
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from app.api.v1.schemas.pet_schemas import (
    CreatePetResponse,
    DeletePetResponse,
    ErrorResponse,
    PetData,
    PetListResponse,
    get_pet_options,
)
from app.services.pet_profile_service import PetImage, PetProfileService
from app.utils.error_handler import ErrorCode, ShopifyAPIException, ValidationException

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Pet Profiles"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request or rejected by Shopify"},
        500: {"model": ErrorResponse, "description": "Shopify unreachable or unexpected response"},
    },
)


def get_shopify_client(request: Request):
    """Cliente GraphQL compartido creado en el lifespan de la aplicación."""
    shopify_client = getattr(request.app.state, "shopify_client", None)
    if shopify_client is None:
        raise ShopifyAPIException("Shopify client not initialized", endpoint="lifespan")
    return shopify_client


def get_pet_profile_service(shopify_client=Depends(get_shopify_client)) -> PetProfileService:
    """Dependencia que construye el servicio de perfiles de mascotas."""
    return PetProfileService(shopify_client)


def _missing(field: str) -> ValidationException:
    return ValidationException(
        f"{field} is required",
        field=field,
        error_code=ErrorCode.MISSING_REQUIRED_FIELD,
    )


async def _parse_create_request(request: Request) -> Tuple[Optional[str], Any, Optional[PetImage]]:
    """
    Extrae customer_id, pet_data e imagen de un request JSON o multipart.

    En multipart, ``pet_data`` llega como texto JSON y la imagen en ``pet_image``.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        customer_id = form.get("customer_id")
        raw_pet_data = form.get("pet_data")

        if isinstance(raw_pet_data, str) and raw_pet_data.strip():
            try:
                raw_pet_data = json.loads(raw_pet_data)
            except ValueError as e:
                raise ValidationException(
                    "pet_data must be a JSON object",
                    field="pet_data",
                    expected_format="JSON object",
                ) from e

        image = None
        upload = form.get("pet_image")
        if isinstance(upload, UploadFile):
            content = await upload.read()
            if content:
                image = PetImage(
                    content=content,
                    content_type=upload.content_type or "",
                    filename=upload.filename,
                )

        return customer_id, raw_pet_data, image

    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationException("Request body must be valid JSON", field="body", expected_format="JSON") from e

    if not isinstance(body, dict):
        raise ValidationException("Request body must be a JSON object", field="body", expected_format="JSON object")

    return body.get("customer_id"), body.get("pet_data"), None


def _validate_pet_data(raw_pet_data: Any) -> PetData:
    """Valida pet_data contra el schema, convirtiendo errores de Pydantic en HTTP 400."""
    if not raw_pet_data:
        raise _missing("pet_data")

    if not isinstance(raw_pet_data, dict):
        raise ValidationException("pet_data must be a JSON object", field="pet_data", expected_format="JSON object")

    try:
        return PetData.model_validate(raw_pet_data)
    except ValidationError as e:
        first_error = e.errors()[0]
        location = ".".join(str(part) for part in first_error.get("loc", ()))
        field = f"pet_data.{location}" if location else "pet_data"
        raise ValidationException(
            f"Invalid {field}: {first_error.get('msg', 'invalid value')}",
            field=field,
            invalid_value=first_error.get("input"),
        ) from e


@router.post("/create", response_model=CreatePetResponse, summary="Create pet profile")
async def create_pet_profile(
    request: Request,
    service: PetProfileService = Depends(get_pet_profile_service),
) -> Dict[str, Any]:
    """
    Crea un perfil de mascota (metaobject) y lo vincula al cliente.

    Acepta JSON ``{customer_id, pet_data}`` o multipart con ``customer_id``,
    ``pet_data`` (texto JSON) y ``pet_image`` opcional.
    """
    customer_id, raw_pet_data, image = await _parse_create_request(request)

    if customer_id is None or not str(customer_id).strip():
        raise _missing("customer_id")

    pet_data = _validate_pet_data(raw_pet_data)

    logger.info(f"📨 Creating pet profile for customer: {customer_id}")
    result = await service.create_pet_profile(str(customer_id), pet_data, image=image)

    return {"success": True, **result}


@router.get("/list", response_model=PetListResponse, summary="List customer pets")
async def list_pet_profiles(
    customer_id: Optional[str] = Query(None, description="ID del cliente (numérico o GID)"),
    service: PetProfileService = Depends(get_pet_profile_service),
) -> Dict[str, Any]:
    """
    Lista las mascotas de un cliente, omitiendo referencias que ya no existen.
    """
    if customer_id is None or not customer_id.strip():
        raise _missing("customer_id")

    logger.info(f"📋 Fetching pets for customer: {customer_id}")
    pets = await service.list_pet_profiles(customer_id)

    return {"pets": pets}


@router.delete("/delete/{pet_id:path}", response_model=DeletePetResponse, summary="Delete pet profile")
async def delete_pet_profile(
    pet_id: str,
    service: PetProfileService = Depends(get_pet_profile_service),
) -> Dict[str, Any]:
    """
    Elimina un perfil de mascota.

    El índice de mascotas del cliente no se modifica; el listado omite la referencia.
    """
    deleted_id = await service.delete_pet_profile(pet_id)

    return {"success": True, "deleted_id": deleted_id}


@router.get("/options", summary="Pet form options")
async def pet_profile_options() -> Dict[str, Any]:
    """
    Opciones del formulario (especies, pesos, suplementos, alergias) con etiquetas.
    """
    return get_pet_options()
