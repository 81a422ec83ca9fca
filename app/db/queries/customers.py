"""
Customer-related GraphQL queries and mutations.

This module contains the customer pet index operations:
- Reading the pet list metafield (value and digest)
- Writing the pet list metafield, optionally conditioned on its digest
"""

# Customer pet index metafield query
CUSTOMER_PET_INDEX_QUERY = """
query GetCustomerPets($id: ID!, $namespace: String!, $key: String!) {
  customer(id: $id) {
    id
    metafield(namespace: $namespace, key: $key) {
      id
      value
      type
      compareDigest
    }
  }
}
"""

# Metafields set mutation (compareDigest on an input makes the write conditional)
SET_CUSTOMER_METAFIELDS_MUTATION = """
mutation SetCustomerPets($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields {
      id
      key
      namespace
      value
      compareDigest
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""
