"""Pydantic schemas for bank API payloads and connector request/response bodies."""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

BANK_DATE_FORMAT = "%Y-%m-%d"


# =============================================================================
# BANK API PAYLOADS
# =============================================================================

class BankPayload(BaseModel):
    """Base for raw bank payloads: camelCase aliases, opaque ids kept as text."""
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class RawAccount(BankPayload):
    """One element of the products response `accounts` array."""
    id: str
    name: Optional[str] = None
    available_balance: Optional[Decimal] = Field(None, alias="availableBalance")
    currency: str
    iban: Optional[str] = None
    type_description: Optional[str] = Field(None, alias="typeDescription")
    family_code: Optional[str] = Field(None, alias="familyCode")


class ProductsResponse(BankPayload):
    """Body of the products endpoint."""
    accounts: list[RawAccount]


class RawMovement(BankPayload):
    """One element of a movements page."""
    id: str
    operation_date: date = Field(..., alias="operationDate")
    amount: Decimal
    currency: str
    concept_description: Optional[str] = Field(None, alias="conceptDescription")
    description: Optional[str] = None
    balance_after_movement: Optional[Decimal] = Field(None, alias="accountBalanceAfterMovement")

    @field_validator("operation_date", mode="before")
    @classmethod
    def parse_operation_date(cls, value: Any) -> date:
        # Strict YYYY-MM-DD, no timestamps or other formats
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise ValueError(f"operationDate must be a string, got {type(value).__name__}")
        return datetime.strptime(value, BANK_DATE_FORMAT).date()


class MovementsPage(BankPayload):
    """Body of one movements request."""
    movements: Optional[list[RawMovement]] = None
    offset: Optional[str] = None
    pagination_balance: Optional[str] = Field(None, alias="paginationBalance")
    there_are_more_movements: Any = Field(None, alias="thereAreMoreMovements")

    @property
    def has_more(self) -> bool:
        """Only a literal JSON true keeps the walk going."""
        return self.there_are_more_movements is True


# =============================================================================
# CONNECTOR API
# =============================================================================

class CredentialsRequest(BaseModel):
    """Request body for POST /v1/accounts."""
    user: str = Field(..., min_length=1, description="Online banking user or DNI")
    password: str = Field(..., min_length=1, description="Online banking password")


class TransactionsRequest(CredentialsRequest):
    """Request body for POST /v1/accounts/{account_id}/transactions."""
    start_date: Optional[date] = Field(None, description="First day to include (defaults to one month ago)")
    end_date: Optional[date] = Field(None, description="Last day to include (defaults to today)")


class MoneySchema(BaseModel):
    """Monetary amount in minor units: `cents` is the amount times 100 (1234 is 12.34)."""
    cents: int
    currency: str


class AccountSchema(BaseModel):
    """Account returned by the connector API."""
    id: str
    name: Optional[str]
    available_balance: Optional[MoneySchema] = None
    balance: Optional[MoneySchema] = None
    currency: str
    iban: Optional[str]
    description: str


class AccountsResponse(BaseModel):
    """Response body for POST /v1/accounts."""
    accounts: list[AccountSchema]


class TransactionSchema(BaseModel):
    """Transaction returned by the connector API."""
    id: str
    amount: MoneySchema
    description: Optional[str]
    effective_date: date
    currency: str
    balance: Optional[MoneySchema] = None


class TransactionsResponse(BaseModel):
    """Response body for POST /v1/accounts/{account_id}/transactions."""
    account_id: str
    start_date: date
    end_date: date
    transactions: list[TransactionSchema]
