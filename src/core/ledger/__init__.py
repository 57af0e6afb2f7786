# src/core/ledger/__init__.py
"""
Общий агрегат леджера.
"""

from src.core.ledger.state import LedgerState

__all__ = ["LedgerState"]
