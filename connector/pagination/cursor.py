"""Continuation state of a movements walk."""
from dataclasses import dataclass
from typing import Optional

from connector.schemas import MovementsPage


@dataclass(frozen=True)
class PageCursor:
    """
    The two opaque continuation tokens the bank hands out between pages.

    Tokens are never parsed or recomputed. Advancing replaces both tokens
    with exactly what the page returned, so a token the bank stops sending is
    dropped instead of being replayed from an earlier page. The two tokens are
    independent: either one can be present without the other.
    """
    offset: Optional[str] = None
    pagination_balance: Optional[str] = None

    @classmethod
    def initial(cls) -> "PageCursor":
        return cls()

    def advance(self, page: MovementsPage) -> "PageCursor":
        return PageCursor(offset=page.offset, pagination_balance=page.pagination_balance)

    def query_params(self) -> list[tuple[str, str]]:
        """Query parameters to append to the next request, in wire order."""
        params = []
        if self.offset is not None:
            params.append(("offset", self.offset))
        if self.pagination_balance is not None:
            params.append(("paginationBalance", self.pagination_balance))
        return params
