"""API route handlers for the BBVA connector."""
import time
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from connector.logging import get_logger, set_request_context
from connector.models import Account, Money, Transaction
from connector.schemas import (
    AccountSchema, AccountsResponse,
    CredentialsRequest, MoneySchema,
    TransactionSchema, TransactionsRequest, TransactionsResponse,
)
from connector.services.bbva import BbvaDriver, default_date_range

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["accounts"])

DriverFactory = Callable[[str, str], BbvaDriver]


def get_driver_factory() -> DriverFactory:
    """Dependency that provides the callable used to open a logged-in driver."""
    return BbvaDriver


@router.post("/accounts", response_model=AccountsResponse)
def list_accounts(
    request_body: CredentialsRequest,
    request: Request,
    driver_factory: DriverFactory = Depends(get_driver_factory),
):
    """
    Log in with the given credentials and list the user's accounts.

    The bank does not report failed logins; bad credentials surface as an
    error from the account listing itself.
    """
    start_time = time.perf_counter()
    request_id = getattr(request.state, "request_id", "unknown")
    set_request_context(request_id, user_id=request_body.user)

    with driver_factory(request_body.user, request_body.password) as driver:
        accounts = driver.fetch_accounts()

    logger.info(
        "accounts_listed",
        account_count=len(accounts),
        duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        outcome="success",
    )

    return AccountsResponse(accounts=[_account_schema(a) for a in accounts])


@router.post("/accounts/{account_id}/transactions", response_model=TransactionsResponse)
def list_transactions(
    account_id: str,
    request_body: TransactionsRequest,
    request: Request,
    driver_factory: DriverFactory = Depends(get_driver_factory),
):
    """
    Fetch the transactions of one account between two dates, both included.

    Missing dates default to the last calendar month up to today. The account
    must be one of the user's products; otherwise 404 is returned.
    """
    start_time = time.perf_counter()
    request_id = getattr(request.state, "request_id", "unknown")
    set_request_context(request_id, user_id=request_body.user)

    default_start, default_end = default_date_range()
    start_date = request_body.start_date or default_start
    end_date = request_body.end_date or default_end

    with driver_factory(request_body.user, request_body.password) as driver:
        account = _find_account(driver.fetch_accounts(), account_id)
        if account is None:
            logger.warning("account_not_found", account_id=account_id, outcome="not_found")
            raise HTTPException(status_code=404, detail=f"Account not found: {account_id}")

        transactions = driver.fetch_transactions(account, start_date, end_date)

    logger.info(
        "transactions_listed",
        account_id=account_id,
        transaction_count=len(transactions),
        duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        outcome="success",
    )

    return TransactionsResponse(
        account_id=account_id,
        start_date=start_date,
        end_date=end_date,
        transactions=[_transaction_schema(t) for t in transactions],
    )


def _find_account(accounts: list[Account], account_id: str):
    for account in accounts:
        if account.id == account_id:
            return account
    return None


def _money_schema(money: Money) -> MoneySchema:
    return MoneySchema(cents=money.cents, currency=money.currency)


def _optional_money_schema(money: Optional[Money]) -> Optional[MoneySchema]:
    return _money_schema(money) if money is not None else None


def _account_schema(account: Account) -> AccountSchema:
    return AccountSchema(
        id=account.id,
        name=account.name,
        available_balance=_optional_money_schema(account.available_balance),
        balance=_optional_money_schema(account.balance),
        currency=account.currency,
        iban=account.iban,
        description=account.description,
    )


def _transaction_schema(transaction: Transaction) -> TransactionSchema:
    return TransactionSchema(
        id=transaction.id,
        amount=_money_schema(transaction.amount),
        description=transaction.description,
        effective_date=transaction.effective_date,
        currency=transaction.currency,
        balance=_optional_money_schema(transaction.balance),
    )
