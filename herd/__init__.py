"""Top-level package for the Herd contact manager and gift assistant."""

from . import models  # noqa: F401
from .models import (
    ChatReply,
    ChatTurn,
    ContactRecord,
    ImportPreview,
    ImportSummary,
    Product,
    ProductRecommendation,
    WaitlistEntry,
)

__all__ = [
    "ChatReply",
    "ChatTurn",
    "ContactRecord",
    "ImportPreview",
    "ImportSummary",
    "Product",
    "ProductRecommendation",
    "WaitlistEntry",
    "chat",
    "ingestion",
    "storage",
    "web",
]
