"""
ID format conversion utilities for Shopify GraphQL and REST API compatibility.

This module handles conversion between different ID formats used by Shopify:
- REST / Liquid IDs: numeric strings like "7065414238465" (``customer.id`` in themes)
- GraphQL IDs: global IDs like "gid://shopify/Customer/7065414238465"
"""

import logging
import re

logger = logging.getLogger(__name__)

_GID_PATTERN = re.compile(r"^gid://shopify/(\w+)/(.+)$")


def rest_to_graphql_id(rest_id: str, resource_type: str) -> str:
    """
    Convert a REST API ID to a GraphQL global ID.

    Args:
        rest_id: Numeric REST ID (e.g., "7065414238465")
        resource_type: Resource type (e.g., "Customer", "Metaobject")

    Returns:
        GraphQL global ID (e.g., "gid://shopify/Customer/7065414238465")
    """
    if not rest_id or not resource_type:
        return ""

    clean_id = graphql_to_rest_id(rest_id)

    graphql_id = f"gid://shopify/{resource_type}/{clean_id}"
    logger.debug(f"Converted REST ID '{rest_id}' to GraphQL ID: {graphql_id}")
    return graphql_id


def graphql_to_rest_id(graphql_id: str) -> str:
    """
    Extract the trailing ID from a GraphQL global ID.

    Args:
        graphql_id: GraphQL global ID (e.g., "gid://shopify/Metaobject/123")

    Returns:
        Trailing REST ID (e.g., "123"); input unchanged if it is not a GID
    """
    if not graphql_id:
        return ""

    match = _GID_PATTERN.match(graphql_id)
    if match:
        return match.group(2)

    return graphql_id


def is_graphql_id(value: str) -> bool:
    """Check whether a value is already a Shopify global ID."""
    return bool(value) and _GID_PATTERN.match(value) is not None


def normalize_customer_id(customer_id: str) -> str:
    """
    Normalize a customer ID to GraphQL format.

    Args:
        customer_id: Customer ID as numeric string or GID

    Returns:
        Customer ID in GraphQL format
    """
    customer_id = str(customer_id).strip()
    if is_graphql_id(customer_id):
        return customer_id
    return rest_to_graphql_id(customer_id, "Customer")


def normalize_metaobject_id(metaobject_id: str) -> str:
    """
    Normalize a pet profile metaobject ID to GraphQL format.

    Args:
        metaobject_id: Metaobject ID as numeric string or GID

    Returns:
        Metaobject ID in GraphQL format
    """
    metaobject_id = str(metaobject_id).strip()
    if is_graphql_id(metaobject_id):
        return metaobject_id
    return rest_to_graphql_id(metaobject_id, "Metaobject")
