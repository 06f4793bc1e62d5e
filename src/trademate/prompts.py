"""
trademate.prompts
~~~~~~~~~~~~~~~~~
Category list and the instruction sent to the vision model with every receipt.

``RECEIPT_CATEGORIES`` must list the ``KnownCategory`` values in order;
the prompt and the CLI help text are built from it.
"""

from __future__ import annotations

RECEIPT_CATEGORIES = [
    "fuel",
    "materials",
    "tools",
    "food",
    "hotel",
    "travel",
    "training",
    "miscellaneous",
]

BAD_IMAGE_TAG = "bad_image"

EXPECTED_KEYS = ["vendor", "date", "amount", "vat_amount", "category", "error"]

_CATS = ", ".join(RECEIPT_CATEGORIES)

_JSON_SCHEMA = """\
{
  "vendor": "Screwfix",
  "date": "2024-03-01",
  "amount": 42.50,
  "vat_amount": 7.08,
  "category": "tools"
}"""

EXTRACTION_PROMPT_TEMPLATE = """\
You are a receipt parser for self-employed tradespeople.
Look at the receipt image and extract:
- vendor: name of the vendor or merchant
- date: transaction date in YYYY-MM-DD format
- amount: total amount including tax, as a number
- vat_amount: total VAT amount if present, else 0
- category: choose exactly one of: {categories}

Return ONLY a single JSON object, no prose, no markdown fences, e.g.:
{schema}

If the image is unreadable or too low quality, return {{"error": "{bad_image}"}}.
"""


def build_extraction_prompt() -> str:
    """Return the fixed natural-language instruction for the vision model."""
    return EXTRACTION_PROMPT_TEMPLATE.format(
        categories=_CATS,
        schema=_JSON_SCHEMA,
        bad_image=BAD_IMAGE_TAG,
    )


__all__ = [
    "RECEIPT_CATEGORIES",
    "BAD_IMAGE_TAG",
    "EXPECTED_KEYS",
    "build_extraction_prompt",
]
