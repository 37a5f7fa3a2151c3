"""Extraction prompt sent with every receipt image.

The prompt is the contract with the model. Bump PROMPT_VERSION whenever the
requested JSON shape changes; responses are validated independently either way.
"""

PROMPT_VERSION = "2"

CATEGORIES: tuple[str, ...] = (
    "Groceries",
    "Restaurant",
    "Entertainment",
    "Electronics",
    "Clothing",
    "Health",
    "Transportation",
    "Utilities",
    "Home",
    "Office Supplies",
    "Personal Care",
    "Subscriptions",
    "Other",
)

EXTRACTION_PROMPT = f"""\
Extract this information from the receipt and return it in valid JSON format:
{{
  "storeName": string,
  "datetime": string (ISO 8601, e.g. "2024-03-01T10:00:00"; date only if no time is printed),
  "items": [{{"name": string, "price": number, "category": string}}],
  "total": number
}}

Choose each item's category from this list:
{", ".join(CATEGORIES)}

Return only the JSON object, with no other text.
"""
