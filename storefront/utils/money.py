"""
Helpers monétaires: conversion en centimes et affichage.
Tous les calculs internes se font en centimes entiers (jamais de float).
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CURRENCY_SYMBOLS = {
    "usd": "$",
    "eur": "€",
    "gbp": "£",
}


def to_cents(value: Any) -> int:
    """
    Convertit un prix en unités (str|int|float|Decimal, ex: 12.5) en centimes.
    - Arrondi commercial (ROUND_HALF_UP) au centime.
    - Soulève ValueError si la valeur n'est pas numérique.
    """
    if isinstance(value, bool):
        raise ValueError(f"Montant invalide: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"Montant invalide: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Montant invalide: {value!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_units(cents: int) -> Decimal:
    """Centimes -> Decimal en unités (1450 -> Decimal('14.50'))."""
    return (Decimal(int(cents)) / 100).quantize(Decimal("0.01"))


def format_cents(cents: int, currency: str = "usd") -> str:
    """
    Formatage d'affichage simple (1450 -> "$14.50").
    Le formatage localisé complet reste la responsabilité du front.
    """
    amount = to_major_units(cents)
    symbol = CURRENCY_SYMBOLS.get((currency or "").lower())
    sign = "-" if amount < 0 else ""
    body = f"{abs(amount):,.2f}"
    if symbol:
        return f"{sign}{symbol}{body}"
    return f"{sign}{body} {(currency or '').upper()}".strip()
