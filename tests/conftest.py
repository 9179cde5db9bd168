"""Shared fixtures: an in-process fake of the BBVA mobile API."""
from urllib.parse import parse_qs

import httpx
import pytest

from connector.services.session import BankSession


class FakeBank:
    """
    Answers login, products and movements requests from canned bodies.

    Movement pages are served in the order they were queued. Every request
    is recorded so tests can inspect URLs, headers and form fields.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.products: dict = {"accounts": []}
        self.pages: list = []
        self.login_status = 200
        self.products_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/DFAUTH/slod/DFServletXML":
            return httpx.Response(
                self.login_status,
                text="<xml>ok</xml>",
                headers={"Set-Cookie": "tsec=token-123; Path=/"},
            )
        if path == "/ENPP/enpp_mult_web_mobility_02/products/v1":
            return httpx.Response(self.products_status, json=self.products)
        if path.endswith("/movements/v1"):
            body = self.pages.pop(0)
            if isinstance(body, str):
                return httpx.Response(200, text=body)
            return httpx.Response(200, json=body)
        return httpx.Response(404, text="not found")

    def session(self) -> BankSession:
        client = httpx.Client(transport=httpx.MockTransport(self.handler))
        return BankSession(client=client)

    @property
    def movement_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/movements/v1")]

    @staticmethod
    def form_fields(request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def movement(
    id: str,
    operation_date: str,
    amount: float = -10.0,
    balance=None,
    concept: str = "Concept",
    currency: str = "EUR",
) -> dict:
    """Helper to create a raw movement dict."""
    data = {
        "id": id,
        "operationDate": operation_date,
        "amount": amount,
        "currency": currency,
        "conceptDescription": concept,
        "description": "Generic description",
    }
    if balance is not None:
        data["accountBalanceAfterMovement"] = balance
    return data


@pytest.fixture
def fake_bank():
    """Create a fake bank with no accounts and no queued pages."""
    return FakeBank()
