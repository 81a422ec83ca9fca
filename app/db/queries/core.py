"""
Core GraphQL queries shared across clients.
"""

# Shop information query (connection test)
SHOP_INFO_QUERY = """
query {
  shop {
    name
    id
    currencyCode
  }
}
"""
