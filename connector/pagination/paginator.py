"""
Movement pagination for a single account.

The movements endpoint only filters by `fromDate`. It also accepts a `toDate`
parameter, but when that parameter is sent the bank stops returning the
post-movement balance on every record. The walk therefore sends `fromDate`
only, drops records newer than the requested end date on the client, and
keeps following the bank's own `thereAreMoreMovements` flag until it is no
longer true. A page whose records were all filtered out does not end the
walk: later pages are only reachable through the cursor it returns.
"""
import json
from datetime import date
from decimal import Decimal
from typing import Callable, Generic, Optional, TypeVar
from urllib.parse import quote, urlencode

from connector.config import settings
from connector.logging import get_logger
from connector.pagination.cursor import PageCursor
from connector.schemas import BANK_DATE_FORMAT, MovementsPage, RawMovement
from connector.services.session import BankSession
from connector import metrics

logger = get_logger(__name__)

ACCOUNT_ENDPOINT = "/ENPP/enpp_mult_web_mobility_02/accounts/"

# The endpoint is a POST, but the API routes it as a read and needs a JSON content type
MOVEMENTS_HEADERS = {
    "Content-Type": "application/json; charset=UTF-8",
    "BBVA-Method": "GET",
}

T = TypeVar("T")


class PaginationLimitExceeded(Exception):
    """Raised when the bank keeps reporting more pages past the configured limit."""
    def __init__(self, account_id: str, max_pages: int):
        self.account_id = account_id
        self.max_pages = max_pages
        super().__init__(
            f"Bank still reported more movements for account {account_id} after {max_pages} pages"
        )


def parse_movements_page(body: str) -> MovementsPage:
    """Parse a movements response body; amounts are read as Decimal."""
    return MovementsPage.model_validate(json.loads(body, parse_float=Decimal))


class MovementPaginator(Generic[T]):
    """
    Walks every movements page of one account and collects the records
    dated on or before `end_date`.

    The cursor and accumulated results are local to collect(), so one
    paginator can be reused. `page_count` is kept on the instance and reset
    by each collect() call. A paginator must not be shared between
    concurrent callers: the session it drives is not reentrant.
    """

    def __init__(
        self,
        session: BankSession,
        account_id: str,
        start_date: date,
        end_date: date,
        build: Callable[[RawMovement], T],
        max_pages: Optional[int] = None,
    ):
        """
        Initialize the paginator.

        Args:
            session: Authenticated bank session
            account_id: Bank identifier of the account
            start_date: Sent as `fromDate` on every page
            end_date: Applied client side, never sent
            build: Maps a surviving movement to the collected value
            max_pages: Page limit. Defaults to settings.max_movement_pages.
        """
        self.session = session
        self.account_id = account_id
        self.start_date = start_date
        self.end_date = end_date
        self.build = build
        self.max_pages = settings.max_movement_pages if max_pages is None else max_pages
        self.page_count = 0

    @property
    def base_url(self) -> str:
        return (
            settings.bank_api_base
            + ACCOUNT_ENDPOINT
            + quote(self.account_id, safe="")
            + "/movements/v1"
        )

    def url_for(self, cursor: PageCursor) -> str:
        """URL of the page `cursor` points at."""
        params = [("fromDate", self.start_date.strftime(BANK_DATE_FORMAT))]
        params.extend(cursor.query_params())
        return f"{self.base_url}?{urlencode(params, quote_via=quote)}"

    def fetch_page(self, cursor: PageCursor) -> MovementsPage:
        body = self.session.post(
            self.url_for(cursor),
            headers=MOVEMENTS_HEADERS,
            operation="movements",
        )
        return parse_movements_page(body)

    def collect(self) -> list[T]:
        """
        Walk all pages and return the collected values in fetch order.

        Raises:
            PaginationLimitExceeded: If more than max_pages pages are requested
            httpx.HTTPError: Transport failures, unmodified
            ValueError: Malformed JSON or a movement that fails validation
        """
        cursor = PageCursor.initial()
        accumulated: list[T] = []
        self.page_count = 0

        while True:
            if self.page_count >= self.max_pages:
                logger.error(
                    "movements_page_limit_exceeded",
                    account_id=self.account_id,
                    max_pages=self.max_pages,
                )
                raise PaginationLimitExceeded(self.account_id, self.max_pages)

            page = self.fetch_page(cursor)
            self.page_count += 1

            discarded = 0
            if page.movements:
                kept = [m for m in page.movements if m.operation_date <= self.end_date]
                discarded = len(page.movements) - len(kept)
                accumulated.extend(self.build(m) for m in kept)
                cursor = cursor.advance(page)

            metrics.record_movement_page(discarded)
            logger.debug(
                "movements_page_fetched",
                account_id=self.account_id,
                page=self.page_count,
                received=len(page.movements or []),
                discarded=discarded,
                has_more=page.has_more,
            )

            if not page.has_more:
                return accumulated
