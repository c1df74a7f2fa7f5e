"""Formatting utilities for amounts shown in alert and insight messages."""

from __future__ import annotations

from typing import Optional, Union

from .config import CURRENCY_SYMBOL


def format_currency(amount: Union[float, int], symbol: Optional[str] = None) -> str:
    """Format a currency amount with thousands separators.

    Trailing zero decimals are dropped, so whole amounts read naturally.

    Example:
        >>> format_currency(1234.5, symbol='$')
        '$1,234.5'
        >>> format_currency(80, symbol='$')
        '$80'
    """
    prefix = CURRENCY_SYMBOL if symbol is None else symbol
    formatted = f"{amount:,.2f}".rstrip('0').rstrip('.')
    return f"{prefix}{formatted}"
