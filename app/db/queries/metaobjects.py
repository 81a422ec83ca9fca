"""
Metaobject-related GraphQL queries and mutations.

This module contains the pet profile metaobject operations:
- Metaobject creation
- Metaobject lookup by ID
- Metaobject deletion
"""

# Create metaobject mutation
CREATE_METAOBJECT_MUTATION = """
mutation CreatePetProfile($metaobject: MetaobjectCreateInput!) {
  metaobjectCreate(metaobject: $metaobject) {
    metaobject {
      id
      handle
      type
      fields {
        key
        value
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

# Single metaobject query
METAOBJECT_BY_ID_QUERY = """
query GetPetMetaobject($id: ID!) {
  metaobject(id: $id) {
    id
    handle
    type
    fields {
      key
      value
    }
  }
}
"""

# Delete metaobject mutation
DELETE_METAOBJECT_MUTATION = """
mutation DeleteMetaobject($id: ID!) {
  metaobjectDelete(id: $id) {
    deletedId
    userErrors {
      field
      message
      code
    }
  }
}
"""
