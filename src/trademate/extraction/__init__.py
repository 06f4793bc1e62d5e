"""
trademate.extraction
~~~~~~~~~~~~~~~~~~~~
The boundary to the external image-understanding model.
"""

from .vision import ReceiptExtractor, draft_from_response

__all__ = ["ReceiptExtractor", "draft_from_response"]
