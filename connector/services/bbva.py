"""BBVA driver: login, account listing and transaction retrieval."""
import calendar
import json
from datetime import date
from decimal import Decimal
from typing import Optional

from connector.config import settings
from connector.logging import TimedOperation, get_logger
from connector.models import Account, Transaction
from connector.pagination import MovementPaginator
from connector.schemas import ProductsResponse
from connector.services.auth import login, normalize_user
from connector.services.mapping import build_account, build_transaction
from connector.services.session import BankSession
from connector import metrics

logger = get_logger(__name__)

PRODUCTS_ENDPOINT = "/ENPP/enpp_mult_web_mobility_02/products/v1"

# Even if the required method is an HTTP POST, the API needs a header that
# says it is a GET, otherwise the request doesn't work.
READ_HEADERS = {"BBVA-Method": "GET"}


def months_before(day: date, months: int) -> date:
    """Same day `months` calendar months earlier, clamped to the month's last day."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def default_date_range(today: Optional[date] = None) -> tuple[date, date]:
    """The window used when the caller gives no dates: one month back to today."""
    today = today or date.today()
    return months_before(today, settings.default_window_months), today


class BbvaDriver:
    """
    Driver for the BBVA mobile banking API.

    The driver logs in on construction; every other call reuses the cookies
    kept in its session. A driver serves one user and is not safe to share
    between threads.
    """

    def __init__(self, user: str, password: str, session: Optional[BankSession] = None):
        """
        Initialize the driver and log in.

        Args:
            user: Access code or DNI, in any case
            password: Online banking password
            session: Session to use. Defaults to a new BankSession with the
                BBVA default headers.
        """
        self.user = normalize_user(user)
        self._password = password
        self.session = session or BankSession()

        try:
            login(self.session, self.user, self._password)
        except Exception:
            self.session.close()
            raise

    def fetch_accounts(self) -> list[Account]:
        """
        Fetch all the accounts of the logged-in user.

        Returns:
            Accounts in the order the bank lists them
        """
        with TimedOperation("fetch_accounts", logger):
            body = self.session.post(
                settings.bank_api_base + PRODUCTS_ENDPOINT,
                headers=READ_HEADERS,
                operation="accounts",
            )
            products = ProductsResponse.model_validate(json.loads(body, parse_float=Decimal))
            accounts = [build_account(data, bank=self) for data in products.accounts]

        logger.info("accounts_fetched", account_count=len(accounts))
        return accounts

    def fetch_transactions(
        self,
        account: Account,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Fetch the transactions of `account` between two dates, both included.

        Args:
            account: Account returned by fetch_accounts()
            start_date: First day. Defaults to one month before today.
            end_date: Last day. Defaults to today.

        Returns:
            Transactions in the order the bank returned them, page by page
        """
        default_start, default_end = default_date_range()
        start_date = start_date or default_start
        end_date = end_date or default_end

        paginator = MovementPaginator(
            self.session,
            account.id,
            start_date,
            end_date,
            build=lambda movement: build_transaction(movement, account),
        )

        with TimedOperation(
            "fetch_transactions",
            logger,
            account_id=account.id,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        ):
            transactions = paginator.collect()

        metrics.record_transaction_fetch(len(transactions), paginator.page_count)
        logger.info(
            "transactions_fetched",
            account_id=account.id,
            transaction_count=len(transactions),
            page_count=paginator.page_count,
        )
        return transactions

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "BbvaDriver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
