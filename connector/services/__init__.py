"""Bank session, authentication and payload mapping."""
from connector.services.auth import login, normalize_user
from connector.services.mapping import build_account, build_transaction, to_money
from connector.services.session import BankSession, default_headers

__all__ = [
    "BankSession",
    "build_account",
    "build_transaction",
    "default_headers",
    "login",
    "normalize_user",
    "to_money",
]
