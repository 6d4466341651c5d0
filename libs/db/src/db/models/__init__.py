"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the household finance models written by ``bank_import``.
"""

from .finance import Account, Base, Category, Household, Transaction

__all__ = [
    "Base",
    "Household",
    "Account",
    "Category",
    "Transaction",
]
