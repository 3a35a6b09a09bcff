"""
Ledger Domain Services
======================

Services untuk canonical order ledger
"""

from .ledger_service import LedgerService

__all__ = [
    'LedgerService'
]
