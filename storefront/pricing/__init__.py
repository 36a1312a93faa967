"""
Module 'pricing': point d'entrée public du moteur de prix.
"""

from .engine import (
    PricedLine,
    PricedCart,
    PricingResult,
    price_line,
    price_cart,
    quote_cart,
    cart_quantity,
)

__all__ = [
    "PricedLine",
    "PricedCart",
    "PricingResult",
    "price_line",
    "price_cart",
    "quote_cart",
    "cart_quantity",
]
