"""Translation of raw bank payloads into connector value objects."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from connector.models import Account, Money, Transaction
from connector.schemas import RawAccount, RawMovement


def to_money(amount: Decimal, currency: str) -> Money:
    """Convert a major-unit decimal amount (12.34) into minor units (1234)."""
    cents = (amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return Money(int(cents), currency)


def optional_money(amount: Optional[Decimal], currency: str) -> Optional[Money]:
    if amount is None:
        return None
    return to_money(amount, currency)


def build_account(data: RawAccount, bank: Any) -> Account:
    """Build an Account from one products entry; both balances come from availableBalance."""
    available = optional_money(data.available_balance, data.currency)
    return Account(
        bank=bank,
        id=data.id,
        name=data.name,
        available_balance=available,
        balance=available,
        currency=data.currency,
        iban=data.iban,
        description=f"{data.type_description or ''} {data.family_code or ''}",
    )


def build_transaction(data: RawMovement, account: Account) -> Transaction:
    """Build a Transaction from one movement record."""
    return Transaction(
        account=account,
        id=data.id,
        amount=to_money(data.amount, data.currency),
        description=(
            data.concept_description
            if data.concept_description is not None
            else data.description
        ),
        effective_date=data.operation_date,
        currency=data.currency,
        balance=optional_money(data.balance_after_movement, data.currency),
    )
