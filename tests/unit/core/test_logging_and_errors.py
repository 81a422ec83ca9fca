"""Tests unitarios para logging y jerarquía de excepciones."""

import json
import logging

from app.core.logging_config import StructuredFormatter, get_logging_configuration, log_api_call
from app.utils.error_handler import (
    AppException,
    ErrorCode,
    PetIndexConflictException,
    ShopifyAPIException,
    ShopifyUserErrorException,
    ValidationException,
)


class TestExceptions:
    """Tests para excepciones de la aplicación."""

    def test_validation_exception(self):
        exc = ValidationException("customer_id is required", field="customer_id")

        assert exc.status_code == 400
        assert exc.details["field"] == "customer_id"
        assert str(exc) == "VALIDATION_ERROR: customer_id is required"

    def test_shopify_api_exception_hides_detail(self):
        """El mensaje público de un error de Shopify es genérico."""
        exc = ShopifyAPIException("HTTP 502 from Shopify", api_response_code=502, endpoint="metaobject")

        assert exc.status_code == 500
        assert exc.public_message == "Error communicating with Shopify"
        assert exc.to_dict()["severity"] == "high"

    def test_user_error_uses_first_message(self):
        exc = ShopifyUserErrorException(
            "metaobjectCreate",
            [{"message": "Name can't be blank", "code": "BLANK"}, {"message": "Other", "code": "INVALID"}],
        )

        assert exc.public_message == "Name can't be blank"
        assert exc.codes == ["BLANK", "INVALID"]

    def test_user_error_without_errors_has_fallback_message(self):
        assert ShopifyUserErrorException("metafieldsSet", []).message == "metafieldsSet failed"

    def test_pet_index_conflict(self):
        exc = PetIndexConflictException("gid://shopify/Customer/1", 3)

        assert isinstance(exc, AppException)
        assert exc.status_code == 409
        assert exc.error_code == ErrorCode.PET_INDEX_CONFLICT


class TestLogging:
    """Tests para configuración de logging."""

    def test_console_only_without_log_file(self):
        config = get_logging_configuration()

        assert "console" in config["handlers"]
        assert config["root"]["handlers"] == ["console"]

    def test_structured_formatter_outputs_json(self):
        record = logging.LogRecord("app.test", logging.INFO, __file__, 10, "hello %s", ("pets",), None)
        record.operation = "metaobjectCreate"

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "hello pets"
        assert payload["extra"]["operation"] == "metaobjectCreate"

    def test_log_api_call_levels(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="app.api.call"):
            log_api_call("POST", "https://test.myshopify.com/graphql.json", 200, 0.1)
            log_api_call("POST", "https://test.myshopify.com/graphql.json", 502, 0.1)

        levels = [record.levelno for record in caplog.records if record.name == "app.api.call"]
        assert levels == [logging.DEBUG, logging.ERROR]
