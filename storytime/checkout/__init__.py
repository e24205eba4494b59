"""
Simulated checkout for finished StoryTime books.
"""

from .service import BookCheckoutService, CheckoutReceipt, slugify

__all__ = ["BookCheckoutService", "CheckoutReceipt", "slugify"]
