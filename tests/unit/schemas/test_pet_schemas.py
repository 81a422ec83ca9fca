"""Tests unitarios para los schemas de perfiles de mascotas."""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from app.api.v1.schemas.pet_schemas import PetData, PetType, WeightCategory, get_pet_options


class TestPetDataValidation:
    """Tests para validación de datos del formulario."""

    def test_minimal_dog(self):
        """Debe aceptar los campos mínimos."""
        pet = PetData.model_validate({"name": "Buddy", "type": "dog", "weight": "medium"})

        assert pet.type == PetType.DOG
        assert pet.weight == WeightCategory.MEDIUM
        assert pet.allergies == []
        assert pet.birthday is None

    def test_accepts_health_boost_in_both_spellings(self):
        """healthBoost (formulario) y health_boost (stepper) son equivalentes."""
        camel = PetData.model_validate({"name": "A", "type": "dog", "weight": "tiny", "healthBoost": "probiotic"})
        snake = PetData.model_validate({"name": "A", "type": "dog", "weight": "tiny", "health_boost": "probiotic"})

        assert camel.health_boost == snake.health_boost

    def test_blank_optionals_become_none(self):
        """Campos opcionales vacíos se tratan como ausentes."""
        pet = PetData.model_validate(
            {"name": "Buddy", "type": "dog", "weight": "large", "birthday": "", "breed": "  ", "healthBoost": ""}
        )

        assert pet.birthday is None
        assert pet.breed is None
        assert pet.health_boost is None

    def test_tags_are_case_insensitive(self):
        """type y weight se normalizan a minúsculas."""
        pet = PetData.model_validate({"name": "Misu", "type": "CAT", "weight": "Cat"})

        assert pet.type == PetType.CAT

    @pytest.mark.parametrize(
        "allergies,expected",
        [
            (["Beef", "chicken", " chicken "], ["Beef", "chicken"]),
            ("Beef, Lamb", ["Beef", "Lamb"]),
            ('["lamb", "turkey"]', ["lamb", "turkey"]),
            ("beef, chicken", ["beef", "chicken"]),
            ("", []),
            (None, []),
        ],
    )
    def test_allergies_normalization(self, allergies, expected):
        """Acepta lista, JSON de lista o texto separado por comas; conserva mayúsculas."""
        pet = PetData.model_validate({"name": "Buddy", "type": "dog", "weight": "medium", "allergies": allergies})

        assert pet.allergies == expected

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "dog", "weight": "medium"},
            {"name": "", "type": "dog", "weight": "medium"},
            {"name": "Buddy", "type": "hamster", "weight": "medium"},
            {"name": "Buddy", "type": "dog", "weight": "huge"},
            {"name": "Buddy", "type": "dog", "weight": "medium", "birthday": "not-a-date"},
            {"name": "Buddy", "type": "dog", "weight": "medium", "allergies": [1, 2]},
        ],
    )
    def test_rejects_invalid_payloads(self, payload):
        """Datos faltantes o fuera de las enumeraciones se rechazan."""
        with pytest.raises(ValidationError):
            PetData.model_validate(payload)

    @pytest.mark.parametrize("pet_type,weight", [("cat", "tiny"), ("cat", "large"), ("dog", "cat")])
    def test_type_and_weight_are_independent(self, pet_type, weight):
        """Cualquier especie acepta cualquier categoría de peso."""
        pet = PetData.model_validate({"name": "Misu", "type": pet_type, "weight": weight})

        assert pet.type.value == pet_type
        assert pet.weight.value == weight


class TestPetDataSerialization:
    """Tests para conversión a campos de metaobject y respuesta pública."""

    def test_metaobject_fields(self):
        """Opcionales vacíos como cadena vacía; alergias como JSON."""
        pet = PetData.model_validate(
            {
                "name": "Buddy",
                "type": "dog",
                "weight": "medium",
                "birthday": "2020-05-01",
                "allergies": ["beef"],
            }
        )

        fields = {field["key"]: field["value"] for field in pet.to_metaobject_fields()}

        assert fields == {
            "name": "Buddy",
            "type": "dog",
            "birthday": "2020-05-01",
            "breed": "",
            "weight": "medium",
            "allergies": json.dumps(["beef"]),
            "health_boost": "",
        }

    def test_metaobject_fields_include_image_when_set(self):
        """image_url solo se envía si existe."""
        pet = PetData.model_validate(
            {"name": "Buddy", "type": "dog", "weight": "medium", "image_url": "https://cdn.example/buddy.png"}
        )

        keys = [field["key"] for field in pet.to_metaobject_fields()]

        assert keys[-1] == "image_url"

    def test_public_dict_uses_camel_case_health_boost(self):
        """La respuesta usa healthBoost y omite opcionales ausentes."""
        pet = PetData.model_validate(
            {"name": "Buddy", "type": "dog", "weight": "medium", "health_boost": "joint_support", "birthday": date(2021, 1, 2)}
        )

        public = pet.to_public_dict()

        assert public["healthBoost"] == "joint_support"
        assert public["birthday"] == "2021-01-02"
        assert "breed" not in public


class TestPetOptions:
    """Tests para opciones del formulario."""

    def test_options_labels(self):
        """Las etiquetas de peso y suplementos coinciden con el formulario."""
        options = get_pet_options()

        assert options["types"] == ["dog", "cat"]
        assert options["weights"]["cat"] == [{"value": "cat", "label": "One size fits all"}]
        assert {"value": "probiotic", "label": "Pre + pro biotic"} in options["health_boosts"]
        assert [weight["value"] for weight in options["weights"]["dog"]] == ["tiny", "medium", "large"]
