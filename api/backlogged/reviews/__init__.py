"""Game reviews, the anchor for comment threads."""

from .models import REVIEWS_TABLES_CQL, Review


__all__ = ["REVIEWS_TABLES_CQL", "Review"]
