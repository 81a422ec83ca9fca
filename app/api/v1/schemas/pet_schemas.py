"""
Modelos Pydantic para perfiles de mascotas.

Este módulo define los schemas de entrada (formulario del storefront) y de
salida (perfiles leídos desde los metaobjects de Shopify).
"""

import json
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PetType(str, Enum):
    """Especies soportadas."""

    DOG = "dog"
    CAT = "cat"


class WeightCategory(str, Enum):
    """Categorías de peso del formulario (los gatos tienen una sola)."""

    TINY = "tiny"
    MEDIUM = "medium"
    LARGE = "large"
    CAT = "cat"


class HealthBoost(str, Enum):
    """Suplementos de salud disponibles."""

    JOINT_SUPPORT = "joint_support"
    GUT_HEALTH = "gut_health"
    PROBIOTIC = "probiotic"


WEIGHT_LABELS: Dict[str, str] = {
    WeightCategory.TINY.value: "Tiny but mighty (<10lbs)",
    WeightCategory.MEDIUM.value: "Perfect medium (25-50lbs)",
    WeightCategory.LARGE.value: "Large and in charge (50+lbs)",
    WeightCategory.CAT.value: "One size fits all",
}

HEALTH_BOOST_LABELS: Dict[str, str] = {
    HealthBoost.JOINT_SUPPORT.value: "Joint support",
    HealthBoost.GUT_HEALTH.value: "Gut health",
    HealthBoost.PROBIOTIC.value: "Pre + pro biotic",
}

KNOWN_ALLERGIES: List[str] = ["beef", "chicken", "lamb", "turkey"]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class PetData(BaseModel):
    """
    Datos de una mascota enviados por el formulario del storefront.

    Acepta ``healthBoost`` (formulario) o ``health_boost`` (stepper).
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=100)
    type: PetType
    birthday: Optional[date] = None
    breed: Optional[str] = Field(default=None, max_length=100)
    weight: WeightCategory
    allergies: List[str] = Field(default_factory=list)
    health_boost: Optional[HealthBoost] = Field(default=None, alias="healthBoost")
    image_url: Optional[str] = None

    @field_validator("birthday", "breed", "health_boost", "image_url", mode="before")
    @classmethod
    def blank_optional_to_none(cls, v):
        """Campos opcionales vacíos se tratan como ausentes."""
        return _blank_to_none(v)

    @field_validator("type", "weight", "health_boost", mode="before")
    @classmethod
    def lowercase_tags(cls, v):
        """Normaliza etiquetas enumeradas a minúsculas."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("allergies", mode="before")
    @classmethod
    def parse_allergies(cls, v):
        """
        Normaliza alergias: acepta lista, JSON de lista o texto separado por comas.

        Los valores se conservan tal cual (solo se recortan espacios y duplicados).
        """
        if v is None:
            return []
        if isinstance(v, str):
            text = v.strip()
            if not text:
                return []
            if text.startswith("["):
                try:
                    v = json.loads(text)
                except ValueError as e:
                    raise ValueError("allergies must be a valid JSON list") from e
            else:
                v = text.split(",")
        if not isinstance(v, list):
            raise ValueError("allergies must be a list of strings")

        allergies: List[str] = []
        for item in v:
            if not isinstance(item, str):
                raise ValueError("allergies must be a list of strings")
            tag = item.strip()
            if tag and tag not in allergies:
                allergies.append(tag)
        return allergies

    def to_metaobject_fields(self) -> List[Dict[str, str]]:
        """
        Convierte los datos a la lista de campos del metaobject ``pet_profile``.

        Los opcionales vacíos se envían como cadena vacía; la imagen solo si existe.
        """
        fields = [
            {"key": "name", "value": self.name},
            {"key": "type", "value": self.type.value},
            {"key": "birthday", "value": self.birthday.isoformat() if self.birthday else ""},
            {"key": "breed", "value": self.breed or ""},
            {"key": "weight", "value": self.weight.value},
            {"key": "allergies", "value": json.dumps(self.allergies)},
            {"key": "health_boost", "value": self.health_boost.value if self.health_boost else ""},
        ]
        if self.image_url:
            fields.append({"key": "image_url", "value": self.image_url})
        return fields

    def to_public_dict(self) -> Dict[str, Any]:
        """Datos tal como se devuelven al storefront (``healthBoost`` en camelCase)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PetProfile(BaseModel):
    """
    Perfil de mascota leído desde un metaobject.

    Los valores se mantienen como texto: los datos antiguos no se revalidan al leer.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    handle: Optional[str] = None
    customer_id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    birthday: Optional[str] = None
    breed: Optional[str] = None
    weight: Optional[str] = None
    allergies: List[str] = Field(default_factory=list)
    health_boost: Optional[str] = Field(default=None, alias="healthBoost")
    image_url: Optional[str] = None


class CreatePetResponse(BaseModel):
    """Respuesta de creación de perfil."""

    success: bool = True
    metaobject_id: str
    pet_data: Dict[str, Any]


class PetListResponse(BaseModel):
    """Respuesta del listado de mascotas de un cliente."""

    pets: List[Dict[str, Any]]


class DeletePetResponse(BaseModel):
    """Respuesta de eliminación de perfil."""

    success: bool = True
    deleted_id: str


class ErrorResponse(BaseModel):
    """Cuerpo de error común a todos los endpoints."""

    success: bool = False
    error: str
    error_code: Optional[str] = None
    path: Optional[str] = None
    timestamp: Optional[str] = None
    request_id: Optional[str] = None


def get_pet_options() -> Dict[str, Any]:
    """
    Opciones del formulario con sus etiquetas de visualización.
    """
    return {
        "types": [pet_type.value for pet_type in PetType],
        "weights": {
            PetType.DOG.value: [
                {"value": weight, "label": WEIGHT_LABELS[weight]}
                for weight in (WeightCategory.TINY.value, WeightCategory.MEDIUM.value, WeightCategory.LARGE.value)
            ],
            PetType.CAT.value: [{"value": WeightCategory.CAT.value, "label": WEIGHT_LABELS[WeightCategory.CAT.value]}],
        },
        "health_boosts": [{"value": value, "label": label} for value, label in HEALTH_BOOST_LABELS.items()],
        "allergies": KNOWN_ALLERGIES,
    }
