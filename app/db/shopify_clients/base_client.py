"""
Base Shopify GraphQL client with common functionality.

This module provides the foundation for all Shopify GraphQL clients,
including connection management, request pacing, and basic query execution.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp import ClientTimeout

from app.core.config import get_settings
from app.core.logging_config import log_api_call
from app.db.queries import SHOP_INFO_QUERY
from app.utils.error_handler import ErrorCode, ShopifyAPIException, ShopifyUserErrorException

logger = logging.getLogger(__name__)


class BaseShopifyGraphQLClient:
    """
    Base client for Shopify GraphQL API operations.

    Provides common functionality like connection management, request pacing,
    error handling, and basic query execution that all specialized clients inherit.
    """

    def __init__(self, settings=None):
        """Initialize the base Shopify GraphQL client."""
        self.settings = settings or get_settings()
        self.shop_url = self.settings.SHOPIFY_SHOP_URL
        self.access_token = self.settings.SHOPIFY_ACCESS_TOKEN
        self.api_version = self.settings.SHOPIFY_API_VERSION
        self.graphql_url = self.settings.shopify_graphql_url

        # Session and request pacing
        self.session: Optional[aiohttp.ClientSession] = None
        self.max_attempts = self.settings.SHOPIFY_MAX_RETRIES
        self._last_request_time = 0.0
        self._rate_limit_lock = asyncio.Lock()
        self._min_request_interval = self.settings.SHOPIFY_MIN_REQUEST_INTERVAL

    async def initialize(self, verify_connection: bool = False):
        """
        Initialize the HTTP session and optionally test the connection.

        Args:
            verify_connection: Run a shop query before returning

        Raises:
            ShopifyAPIException: If initialization fails
        """
        timeout = ClientTimeout(total=self.settings.SHOPIFY_REQUEST_TIMEOUT_SECONDS, connect=10)
        self.session = aiohttp.ClientSession(
            timeout=timeout,
            headers=self.settings.get_shopify_headers(),
        )

        if verify_connection:
            try:
                await self.test_connection()
            except ShopifyAPIException:
                await self.close()
                raise

        logger.info(f"✅ Shopify GraphQL client initialized for {self.shop_url}")

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Shopify GraphQL client closed")

    async def _execute_query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation: str = "query",
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query with request pacing and error handling.

        Only network failures are attempted again, and only when
        ``SHOPIFY_MAX_RETRIES`` is greater than one.

        Args:
            query: GraphQL query string
            variables: Query variables
            operation: Operation name for logs and errors

        Returns:
            Dict: The ``data`` member of the GraphQL response

        Raises:
            ShopifyAPIException: Shopify unreachable, non-200 answer, or GraphQL errors
        """
        if not self.session:
            raise ShopifyAPIException("Client not initialized. Call initialize() first.", endpoint=operation)

        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        last_exception = None

        for attempt in range(self.max_attempts):
            await self._check_rate_limit()
            start_time = time.time()

            try:
                async with self.session.post(self.graphql_url, json=payload) as response:
                    log_api_call("POST", self.graphql_url, response.status, time.time() - start_time, operation=operation)

                    if response.status != 200:
                        body = await response.text()
                        raise ShopifyAPIException(
                            f"HTTP {response.status} from Shopify during {operation}: {body[:200]}",
                            api_response_code=response.status,
                            endpoint=operation,
                        )

                    try:
                        response_data = await response.json()
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise ShopifyAPIException(
                            f"Invalid JSON from Shopify during {operation}: {e}",
                            api_response_code=response.status,
                            endpoint=operation,
                            error_code=ErrorCode.SHOPIFY_UNEXPECTED_RESPONSE,
                        ) from e

                    self._handle_graphql_errors(response_data, operation)

                    data = response_data.get("data")
                    if not isinstance(data, dict):
                        raise ShopifyAPIException(
                            f"Missing data in Shopify response for {operation}",
                            endpoint=operation,
                            error_code=ErrorCode.SHOPIFY_UNEXPECTED_RESPONSE,
                        )
                    return data

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = ShopifyAPIException(
                    f"Network error during {operation}: {str(e) or type(e).__name__}",
                    endpoint=operation,
                    error_code=ErrorCode.SHOPIFY_CONNECTION_FAILED,
                )
                if attempt < self.max_attempts - 1:
                    wait_time = min(2**attempt, 10)
                    logger.warning(f"Network error, retrying in {wait_time}s (attempt {attempt + 1})")
                    await asyncio.sleep(wait_time)

        raise last_exception

    async def _check_rate_limit(self):
        """
        Keep a minimum interval between requests to avoid overwhelming Shopify's API.
        """
        if self._min_request_interval <= 0:
            return

        # Concurrent callers take turns; each one reserves its slot before releasing the lock
        async with self._rate_limit_lock:
            time_since_last_request = time.time() - self._last_request_time
            if time_since_last_request < self._min_request_interval:
                await asyncio.sleep(self._min_request_interval - time_since_last_request)
            self._last_request_time = time.time()

    async def test_connection(self) -> bool:
        """
        Test the connection to Shopify GraphQL API.

        Returns:
            bool: True if connection is successful

        Raises:
            ShopifyAPIException: If connection test fails
        """
        result = await self._execute_query(SHOP_INFO_QUERY, operation="shop")
        shop_info = result.get("shop") or {}
        logger.info(
            f"✅ Connected to Shopify store: {shop_info.get('name', 'Unknown')} "
            f"({shop_info.get('currencyCode', 'Unknown')})"
        )
        return True

    def _handle_graphql_errors(self, response_data: Dict[str, Any], operation: str = "operation"):
        """
        Raise on top-level GraphQL errors.

        Args:
            response_data: Raw GraphQL response
            operation: Operation name for error context

        Raises:
            ShopifyAPIException: If the response carries GraphQL errors
        """
        if response_data.get("errors"):
            errors = response_data["errors"]
            error_messages = [err.get("message", str(err)) if isinstance(err, dict) else str(err) for err in errors]
            raise ShopifyAPIException(
                f"{operation} GraphQL errors: {', '.join(error_messages)}",
                endpoint=operation,
            )

    def _handle_user_errors(self, mutation_result: Dict[str, Any], operation: str):
        """
        Raise on business-logic errors returned by a mutation.

        Args:
            mutation_result: Payload of the mutation (e.g. ``data["metaobjectCreate"]``)
            operation: Operation name for error context

        Raises:
            ShopifyUserErrorException: If there are user errors
        """
        user_errors: List[Dict[str, Any]] = mutation_result.get("userErrors") or []
        if user_errors:
            logger.error(f"❌ {operation} user errors: {user_errors}")
            raise ShopifyUserErrorException(operation, user_errors)

    @staticmethod
    def _require_payload(data: Dict[str, Any], key: str, operation: str) -> Dict[str, Any]:
        """
        Return ``data[key]`` or raise if Shopify answered with an unexpected shape.
        """
        payload = data.get(key)
        if not isinstance(payload, dict):
            raise ShopifyAPIException(
                f"Unexpected response shape for {operation}: missing '{key}'",
                endpoint=operation,
                error_code=ErrorCode.SHOPIFY_UNEXPECTED_RESPONSE,
            )
        return payload

    def __str__(self):
        """String representation of the client."""
        return f"{type(self).__name__}(shop={self.shop_url}, api_version={self.api_version})"

    def __repr__(self):
        """Detailed string representation of the client."""
        return (
            f"{type(self).__name__}("
            f"shop_url='{self.shop_url}', "
            f"api_version='{self.api_version}', "
            f"initialized={self.session is not None})"
        )
