# ruff: noqa: I001
"""Persistence boundary for bank_import.

Functions here read and write the shared database owned by ``libs/db``
through SQLAlchemy ORM models in ``db.models.finance`` and a session provided
by ``db.client``. Callers own the transaction (commit/rollback).

Scope:
- Load the category index for a household (household-scoped + shared set).
- Create a category, tolerating an "already exists" race with another run.
- Look up or create the household's default account.
- Insert transactions with ON CONFLICT DO NOTHING on ``import_hash``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.finance import Account, Category, Household, Transaction, new_id
from .categories import CategoryIndex
from .logging_setup import get_logger
from .models import CategoryType

DEFAULT_ACCOUNT_NAME = "Hoofdrekening"
DEFAULT_ACCOUNT_IBAN = "UNKNOWN"

_logger = get_logger("bank_import.persistence")


def household_exists(session: Session, household_id: str) -> bool:
    return session.get(Household, household_id) is not None


def load_category_index(session: Session, household_id: str) -> CategoryIndex:
    """Build the index from categories of ``household_id`` and the shared set.

    Household-scoped rows are ordered first so a household override wins over
    a shared category of the same name.
    """

    rows = session.execute(
        select(Category.name, Category.id)
        .where(or_(Category.household_id == household_id, Category.household_id.is_(None)))
        .order_by(Category.household_id.is_(None), Category.name)
    ).all()
    return CategoryIndex((name, cid) for name, cid in rows)


def create_category(
    session: Session,
    *,
    household_id: str,
    name: str,
    category_type: CategoryType,
) -> str:
    """Insert a household category and return its id.

    A unique-constraint violation (a concurrent run created the same name) is
    resolved by returning the existing row's id. The insert runs inside a
    savepoint so the surrounding transaction stays usable.
    """

    category = Category(
        id=new_id(),
        household_id=household_id,
        name=name,
        type=category_type,
        is_fixed=False,
        is_allowance=False,
    )
    try:
        with session.begin_nested():
            session.add(category)
        return category.id
    except IntegrityError:
        existing = session.execute(
            select(Category.id).where(Category.household_id == household_id, Category.name == name)
        ).scalar_one_or_none()
        if existing is None:
            raise
        _logger.info("categories:already_exists household=%s name=%s", household_id, name)
        return existing


def get_or_create_default_account(session: Session, household_id: str) -> str:
    """Return the id of the household's first account, creating the default one if none exists."""

    account_id = session.execute(
        select(Account.id)
        .where(Account.household_id == household_id)
        .order_by(Account.created_at, Account.id)
        .limit(1)
    ).scalar_one_or_none()
    if account_id is not None:
        return account_id

    account = Account(
        id=new_id(),
        household_id=household_id,
        name=DEFAULT_ACCOUNT_NAME,
        iban=DEFAULT_ACCOUNT_IBAN,
    )
    session.add(account)
    session.flush()
    _logger.info("accounts:created_default household=%s", household_id)
    return account.id


def _dialect_insert(session: Session):
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return pg_insert
    if name == "sqlite":
        return sqlite_insert
    raise RuntimeError(f"Unsupported database dialect for conflict-ignoring insert: {name}")


def insert_transactions(session: Session, rows: Sequence[Mapping[str, Any]]) -> int:
    """Insert ``rows``, skipping any ``import_hash`` the household already holds.

    Returns the number of rows actually inserted.
    """

    if not rows:
        return 0
    payloads = [{"id": new_id(), **row} for row in rows]
    insert = _dialect_insert(session)
    stmt = insert(Transaction).values(payloads).on_conflict_do_nothing(
        index_elements=[Transaction.household_id, Transaction.import_hash]
    )
    result = session.execute(stmt)
    return max(result.rowcount or 0, 0)


__all__ = [
    "DEFAULT_ACCOUNT_IBAN",
    "DEFAULT_ACCOUNT_NAME",
    "create_category",
    "get_or_create_default_account",
    "household_exists",
    "insert_transactions",
    "load_category_index",
]
