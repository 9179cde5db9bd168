"""Tests for the BBVA driver end to end against a fake bank."""
from datetime import date, timedelta

import httpx
import pytest

from connector.models import Money
from connector.services.bbva import BbvaDriver, default_date_range, months_before
from conftest import movement


def _account(id: str = "ACC-1", balance: float = 1520.55) -> dict:
    return {
        "id": id,
        "name": "Cuenta Online",
        "availableBalance": balance,
        "currency": "EUR",
        "iban": "ES7601820000000000000001",
        "typeDescription": "CUENTA",
        "familyCode": "01",
    }


class TestMonthsBefore:
    """Test calendar month arithmetic for the default window."""

    def test_same_day_previous_month(self):
        assert months_before(date(2024, 5, 15), 1) == date(2024, 4, 15)

    def test_crosses_year(self):
        assert months_before(date(2024, 1, 15), 1) == date(2023, 12, 15)

    def test_clamps_to_shorter_month(self):
        assert months_before(date(2024, 3, 31), 1) == date(2024, 2, 29)
        assert months_before(date(2023, 3, 31), 1) == date(2023, 2, 28)

    def test_multiple_months(self):
        assert months_before(date(2024, 2, 10), 14) == date(2022, 12, 10)

    def test_default_range(self):
        assert default_date_range(date(2024, 7, 31)) == (date(2024, 6, 30), date(2024, 7, 31))


class TestDriverLogin:
    """Test the login performed on construction."""

    def test_login_happens_once_on_construction(self, fake_bank):
        BbvaDriver("49021740t", "secret", session=fake_bank.session())

        assert len(fake_bank.requests) == 1
        fields = fake_bank.form_fields(fake_bank.requests[0])
        assert fields["eai_user"] == "0019-049021740T"
        assert fields["eai_password"] == "secret"

    def test_normalized_user_is_exposed(self, fake_bank):
        driver = BbvaDriver("ab12cd3", "secret", session=fake_bank.session())

        assert driver.user == "AB12CD3"

    def test_login_failure_propagates(self, fake_bank):
        fake_bank.login_status = 500

        with pytest.raises(httpx.HTTPStatusError):
            BbvaDriver("ab12cd3", "secret", session=fake_bank.session())


class TestFetchAccounts:
    """Test account listing."""

    def _driver(self, fake_bank) -> BbvaDriver:
        return BbvaDriver("ab12cd3", "secret", session=fake_bank.session())

    def test_accounts_are_mapped_in_order(self, fake_bank):
        fake_bank.products = {"accounts": [_account("ACC-1", 10.5), _account("ACC-2", 0)]}
        driver = self._driver(fake_bank)

        accounts = driver.fetch_accounts()

        assert [a.id for a in accounts] == ["ACC-1", "ACC-2"]
        assert accounts[0].bank is driver
        assert accounts[0].balance == Money(1050, "EUR")
        assert accounts[0].available_balance == Money(1050, "EUR")
        assert accounts[1].balance == Money(0, "EUR")

    def test_products_request_claims_get(self, fake_bank):
        driver = self._driver(fake_bank)

        driver.fetch_accounts()

        request = fake_bank.requests[-1]
        assert request.method == "POST"
        assert request.url.path == "/ENPP/enpp_mult_web_mobility_02/products/v1"
        assert request.headers["BBVA-Method"] == "GET"
        assert "tsec=token-123" in request.headers["Cookie"]

    def test_account_without_balance_is_still_listed(self, fake_bank):
        card = {"id": "CARD-1", "availableBalance": None, "currency": "EUR"}
        fake_bank.products = {"accounts": [_account("ACC-1", 10.5), card]}

        accounts = self._driver(fake_bank).fetch_accounts()

        assert [a.id for a in accounts] == ["ACC-1", "CARD-1"]
        assert accounts[0].balance == Money(1050, "EUR")
        assert accounts[1].balance is None

    def test_empty_accounts(self, fake_bank):
        assert self._driver(fake_bank).fetch_accounts() == []

    def test_missing_accounts_field_is_an_error(self, fake_bank):
        fake_bank.products = {"error": "session expired"}

        with pytest.raises(ValueError):
            self._driver(fake_bank).fetch_accounts()


class TestFetchTransactions:
    """Test transaction retrieval through the driver."""

    def _driver_and_account(self, fake_bank):
        fake_bank.products = {"accounts": [_account()]}
        driver = BbvaDriver("ab12cd3", "secret", session=fake_bank.session())
        return driver, driver.fetch_accounts()[0]

    def test_transactions_across_pages(self, fake_bank):
        driver, account = self._driver_and_account(fake_bank)
        fake_bank.pages = [
            {"movements": [movement("1", "2024-01-20", amount=12.34, balance=100.0),
                           movement("2", "2024-02-20")],
             "thereAreMoreMovements": True, "offset": "A"},
            {"movements": [movement("3", "2024-01-05", amount=-5)],
             "thereAreMoreMovements": False},
        ]

        transactions = driver.fetch_transactions(account, date(2024, 1, 1), date(2024, 1, 31))

        assert [t.id for t in transactions] == ["1", "3"]
        assert transactions[0].amount == Money(1234, "EUR")
        assert transactions[0].balance == Money(10000, "EUR")
        assert transactions[0].account is account
        assert transactions[1].amount == Money(-500, "EUR")
        assert transactions[1].balance is None

    def test_default_window(self, fake_bank):
        driver, account = self._driver_and_account(fake_bank)
        today = date.today()
        fake_bank.pages = [
            {"movements": [movement("today", today.isoformat()),
                           movement("tomorrow", (today + timedelta(days=1)).isoformat())],
             "thereAreMoreMovements": False},
        ]

        transactions = driver.fetch_transactions(account)

        assert [t.id for t in transactions] == ["today"]
        expected_start = months_before(today, 1).isoformat()
        assert fake_bank.movement_requests[0].url.params["fromDate"] == expected_start

    def test_each_call_starts_a_fresh_walk(self, fake_bank):
        driver, account = self._driver_and_account(fake_bank)
        fake_bank.pages = [
            {"movements": [movement("1", "2024-01-10")], "thereAreMoreMovements": True, "offset": "A"},
            {"movements": [], "thereAreMoreMovements": False},
            {"movements": [movement("2", "2024-01-11")], "thereAreMoreMovements": False},
        ]

        driver.fetch_transactions(account, date(2024, 1, 1), date(2024, 1, 31))
        second = driver.fetch_transactions(account, date(2024, 1, 1), date(2024, 1, 31))

        assert [t.id for t in second] == ["2"]
        assert "offset" not in fake_bank.movement_requests[2].url.params
