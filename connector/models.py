"""
Value objects produced by the connector.

These mirror the construction contract of the host banking framework:
Money(cents, currency), Account(bank, id, ...) and Transaction(account, id, ...).
They are immutable once built.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional


@dataclass(frozen=True)
class Money:
    """A monetary amount in minor currency units (cents)."""
    cents: int
    currency: str


@dataclass(frozen=True)
class Account:
    """A bank account as listed by the products endpoint."""
    bank: Any = field(repr=False, compare=False)
    id: str
    name: Optional[str]
    available_balance: Optional[Money]
    balance: Optional[Money]
    currency: str
    iban: Optional[str]
    description: str


@dataclass(frozen=True)
class Transaction:
    """A single account movement."""
    account: Account = field(repr=False, compare=False)
    id: str
    amount: Money
    description: Optional[str]
    effective_date: date
    currency: str
    balance: Optional[Money] = None  # None when the bank sent no post-movement balance
