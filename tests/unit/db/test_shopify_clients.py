"""Tests unitarios para los clientes GraphQL de Shopify (metaobjects e índice de mascotas)."""

import asyncio
import json
import time
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from app.db.shopify_clients import ShopifyCustomerClient, ShopifyGraphQLClient, ShopifyMetaobjectClient
from app.db.shopify_clients.customer_client import PET_INDEX_METAFIELD_TYPE, parse_pet_ids
from app.utils.error_handler import ErrorCode, ShopifyAPIException, ShopifyUserErrorException


def _mock_session(status=200, json_body=None, text_body=""):
    """Sesión aiohttp falsa cuyo post() devuelve una respuesta fija."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_body)
    response.text = AsyncMock(return_value=text_body)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.post = MagicMock(return_value=context)
    return session


class TestExecuteQuery:
    """Tests para ejecución de queries y manejo de errores de transporte."""

    @pytest.mark.asyncio
    async def test_returns_data(self, test_settings):
        """Debe devolver el miembro data de la respuesta."""
        client = ShopifyMetaobjectClient(test_settings)
        client.session = _mock_session(json_body={"data": {"shop": {"name": "Test"}}})

        data = await client._execute_query("query { shop { name } }", operation="shop")

        assert data == {"shop": {"name": "Test"}}
        posted = client.session.post.call_args
        assert posted.args[0] == "https://test-shop.myshopify.com/admin/api/2025-04/graphql.json"
        assert "variables" not in posted.kwargs["json"]

    @pytest.mark.asyncio
    async def test_requires_initialized_session(self, test_settings):
        """Sin initialize() debe fallar con ShopifyAPIException."""
        client = ShopifyMetaobjectClient(test_settings)

        with pytest.raises(ShopifyAPIException, match="not initialized"):
            await client._execute_query("query { shop { name } }")

    @pytest.mark.asyncio
    async def test_http_error_raises(self, test_settings):
        """Un status distinto de 200 es un error de Shopify."""
        client = ShopifyMetaobjectClient(test_settings)
        client.session = _mock_session(status=401, text_body="Invalid API key")

        with pytest.raises(ShopifyAPIException) as exc_info:
            await client._execute_query("query { shop { name } }", operation="shop")

        assert exc_info.value.api_response_code == 401
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self, test_settings):
        """Errores GraphQL de nivel superior se reportan como error de Shopify."""
        client = ShopifyMetaobjectClient(test_settings)
        client.session = _mock_session(json_body={"errors": [{"message": "Throttled"}]})

        with pytest.raises(ShopifyAPIException, match="Throttled"):
            await client._execute_query("query { shop { name } }", operation="shop")

    @pytest.mark.asyncio
    async def test_missing_data_is_unexpected_response(self, test_settings):
        """Una respuesta sin data tiene forma inesperada."""
        client = ShopifyMetaobjectClient(test_settings)
        client.session = _mock_session(json_body={"extensions": {}})

        with pytest.raises(ShopifyAPIException) as exc_info:
            await client._execute_query("query { shop { name } }", operation="shop")

        assert exc_info.value.error_code == ErrorCode.SHOPIFY_UNEXPECTED_RESPONSE

    @pytest.mark.asyncio
    async def test_network_error_is_not_retried_by_default(self, test_settings):
        """Fallos de red: un solo intento y error de conexión."""
        client = ShopifyMetaobjectClient(test_settings)
        client.session = MagicMock()
        client.session.post = MagicMock(side_effect=aiohttp.ClientConnectionError("connection refused"))

        with pytest.raises(ShopifyAPIException) as exc_info:
            await client._execute_query("query { shop { name } }", operation="shop")

        assert exc_info.value.error_code == ErrorCode.SHOPIFY_CONNECTION_FAILED
        assert client.session.post.call_count == 1
        assert exc_info.value.public_message == "Error communicating with Shopify"

    @pytest.mark.asyncio
    async def test_concurrent_queries_respect_min_interval(self, test_settings):
        """Consultas concurrentes se espacian al menos SHOPIFY_MIN_REQUEST_INTERVAL."""
        settings = test_settings.model_copy(update={"SHOPIFY_MIN_REQUEST_INTERVAL": 0.05})
        client = ShopifyMetaobjectClient(settings)
        client.session = _mock_session(json_body={"data": {"shop": {"name": "Test"}}})
        response_context = client.session.post.return_value
        sent_at = []

        def record_post(*args, **kwargs):
            sent_at.append(time.time())
            return response_context

        client.session.post = MagicMock(side_effect=record_post)

        await asyncio.gather(*(client._execute_query("query { shop { name } }", operation="shop") for _ in range(3)))

        assert len(sent_at) == 3
        gaps = [later - earlier for earlier, later in zip(sent_at, sent_at[1:])]
        assert all(gap >= 0.04 for gap in gaps)


class TestMetaobjectClient:
    """Tests para operaciones de metaobjects."""

    @pytest.mark.asyncio
    async def test_create_metaobject(self, test_settings):
        """Debe enviar tipo y campos y devolver el metaobject creado."""
        client = ShopifyMetaobjectClient(test_settings)
        created = {"id": "gid://shopify/Metaobject/1", "handle": "buddy", "type": "pet_profile", "fields": []}
        client._execute_query = AsyncMock(return_value={"metaobjectCreate": {"metaobject": created, "userErrors": []}})

        fields = [{"key": "name", "value": "Buddy"}]
        result = await client.create_metaobject("pet_profile", fields)

        assert result == created
        variables = client._execute_query.call_args.args[1]
        assert variables == {"metaobject": {"type": "pet_profile", "fields": fields}}

    @pytest.mark.asyncio
    async def test_create_metaobject_user_errors(self, test_settings):
        """userErrors se convierten en ShopifyUserErrorException con el primer mensaje."""
        client = ShopifyMetaobjectClient(test_settings)
        client._execute_query = AsyncMock(
            return_value={
                "metaobjectCreate": {
                    "metaobject": None,
                    "userErrors": [
                        {"field": ["metaobject", "type"], "message": "No definition for type", "code": "NOT_FOUND"},
                        {"field": ["metaobject"], "message": "Second error", "code": "INVALID"},
                    ],
                }
            }
        )

        with pytest.raises(ShopifyUserErrorException) as exc_info:
            await client.create_metaobject("pet_profile", [])

        assert exc_info.value.message == "No definition for type"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_create_metaobject_without_id_is_unexpected(self, test_settings):
        """Sin metaobject en la respuesta es una forma inesperada."""
        client = ShopifyMetaobjectClient(test_settings)
        client._execute_query = AsyncMock(return_value={"metaobjectCreate": {"metaobject": None, "userErrors": []}})

        with pytest.raises(ShopifyAPIException) as exc_info:
            await client.create_metaobject("pet_profile", [])

        assert exc_info.value.error_code == ErrorCode.SHOPIFY_UNEXPECTED_RESPONSE

    @pytest.mark.asyncio
    async def test_get_metaobject_not_found(self, test_settings):
        """Un metaobject inexistente devuelve None."""
        client = ShopifyMetaobjectClient(test_settings)
        client._execute_query = AsyncMock(return_value={"metaobject": None})

        assert await client.get_metaobject("gid://shopify/Metaobject/404") is None

    @pytest.mark.asyncio
    async def test_delete_metaobject(self, test_settings):
        """Debe devolver el deletedId."""
        client = ShopifyMetaobjectClient(test_settings)
        client._execute_query = AsyncMock(
            return_value={"metaobjectDelete": {"deletedId": "gid://shopify/Metaobject/1", "userErrors": []}}
        )

        assert await client.delete_metaobject("gid://shopify/Metaobject/1") == "gid://shopify/Metaobject/1"

    @pytest.mark.asyncio
    async def test_delete_missing_payload_is_unexpected(self, test_settings):
        """Sin payload de la mutación es una forma inesperada."""
        client = ShopifyMetaobjectClient(test_settings)
        client._execute_query = AsyncMock(return_value={})

        with pytest.raises(ShopifyAPIException):
            await client.delete_metaobject("gid://shopify/Metaobject/1")


class TestCustomerClient:
    """Tests para lectura y escritura del índice de mascotas."""

    @pytest.mark.asyncio
    async def test_get_pet_index(self, test_settings):
        """Debe leer IDs y compareDigest del metafield."""
        client = ShopifyCustomerClient(test_settings)
        client._execute_query = AsyncMock(
            return_value={
                "customer": {
                    "id": "gid://shopify/Customer/123",
                    "metafield": {
                        "id": "gid://shopify/Metafield/9",
                        "value": '["gid://shopify/Metaobject/1","gid://shopify/Metaobject/2"]',
                        "type": PET_INDEX_METAFIELD_TYPE,
                        "compareDigest": "abc123",
                    },
                }
            }
        )

        index = await client.get_pet_index("gid://shopify/Customer/123")

        assert index.pet_ids == ["gid://shopify/Metaobject/1", "gid://shopify/Metaobject/2"]
        assert index.compare_digest == "abc123"
        assert index.metafield_id is not None
        variables = client._execute_query.call_args.args[1]
        assert variables == {"id": "gid://shopify/Customer/123", "namespace": "custom", "key": "pets"}

    @pytest.mark.asyncio
    async def test_get_pet_index_without_metafield(self, test_settings):
        """Cliente sin metafield: índice vacío que aún no existe."""
        client = ShopifyCustomerClient(test_settings)
        client._execute_query = AsyncMock(return_value={"customer": {"id": "gid://shopify/Customer/123", "metafield": None}})

        index = await client.get_pet_index("gid://shopify/Customer/123")

        assert index.pet_ids == []
        assert index.metafield_id is None
        assert index.compare_digest is None

    @pytest.mark.asyncio
    async def test_get_pet_index_unknown_customer(self, test_settings):
        """Cliente inexistente devuelve None."""
        client = ShopifyCustomerClient(test_settings)
        client._execute_query = AsyncMock(return_value={"customer": None})

        assert await client.get_pet_index("gid://shopify/Customer/999") is None

    @pytest.mark.asyncio
    async def test_set_pet_index_unconditional(self, test_settings):
        """Escritura sin compareDigest."""
        client = ShopifyCustomerClient(test_settings)
        client._execute_query = AsyncMock(
            return_value={"metafieldsSet": {"metafields": [{"compareDigest": "new"}], "userErrors": []}}
        )

        digest = await client.set_pet_index("gid://shopify/Customer/123", ["gid://shopify/Metaobject/1"])

        metafield_input = client._execute_query.call_args.args[1]["metafields"][0]
        assert digest == "new"
        assert "compareDigest" not in metafield_input
        assert metafield_input["type"] == "list.metaobject_reference"
        assert json.loads(metafield_input["value"]) == ["gid://shopify/Metaobject/1"]

    @pytest.mark.asyncio
    async def test_set_pet_index_conditional_sends_digest(self, test_settings):
        """La escritura condicional envía el digest leído (None si no existía)."""
        client = ShopifyCustomerClient(test_settings)
        client._execute_query = AsyncMock(return_value={"metafieldsSet": {"metafields": [], "userErrors": []}})

        await client.set_pet_index("gid://shopify/Customer/123", [], conditional=True, compare_digest=None)

        metafield_input = client._execute_query.call_args.args[1]["metafields"][0]
        assert "compareDigest" in metafield_input
        assert metafield_input["compareDigest"] is None

    @pytest.mark.asyncio
    async def test_set_pet_index_stale_object(self, test_settings):
        """STALE_OBJECT se reporta con su código."""
        client = ShopifyCustomerClient(test_settings)
        client._execute_query = AsyncMock(
            return_value={
                "metafieldsSet": {
                    "metafields": [],
                    "userErrors": [{"field": ["metafields", "0"], "message": "Stale", "code": "STALE_OBJECT"}],
                }
            }
        )

        with pytest.raises(ShopifyUserErrorException) as exc_info:
            await client.set_pet_index("gid://shopify/Customer/123", [], conditional=True, compare_digest="old")

        assert exc_info.value.codes == ["STALE_OBJECT"]

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, []),
            ("", []),
            ("not json", []),
            ('{"a": 1}', []),
            ('["gid://shopify/Metaobject/1", "", 5]', ["gid://shopify/Metaobject/1"]),
        ],
    )
    def test_parse_pet_ids(self, raw, expected):
        """Valores mal formados se leen como índice vacío."""
        assert parse_pet_ids(raw) == expected


class TestUnifiedClient:
    """Tests para el cliente unificado."""

    @pytest.mark.asyncio
    async def test_initialize_shares_session(self, test_settings):
        """Los clientes especializados comparten la sesión del cliente unificado."""
        client = ShopifyGraphQLClient(test_settings)

        await client.initialize()
        try:
            assert client.session is not None
            assert client.metaobjects.session is client.session
            assert client.customers.session is client.session
        finally:
            await client.close()

        assert client.metaobjects.session is None
        assert client.customers.session is None
