"""User identifier normalization and the login exchange."""
import re

from connector.config import settings
from connector.logging import get_logger, mask_identifier
from connector.services.session import BankSession

logger = get_logger(__name__)

LOGIN_ENDPOINT = "/DFAUTH/slod/DFServletXML"

# Spanish national ID (DNI): eight digits and a control letter
DNI_PATTERN = re.compile(r"[0-9]{8}[A-Z]")
DNI_PREFIX = "0019-0"


def normalize_user(user: str) -> str:
    """
    Turn a user-supplied identifier into the value the login form expects.

    BBVA accepts two kinds of identifiers:
    1. An access code, passed through as is (uppercased)
    2. A DNI number, which needs a prefix: "49021740T" becomes "0019-049021740T"

    Args:
        user: Raw identifier as typed by the user

    Returns:
        Normalized identifier
    """
    user = user.upper()
    if DNI_PATTERN.fullmatch(user):
        return DNI_PREFIX + user
    return user


def login(session: BankSession, user: str, password: str) -> None:
    """
    Log in and leave the session cookies in `session`.

    The response body is not inspected: a wrong password is only noticed by
    the requests that follow. Transport errors propagate from the session.

    Args:
        session: Session that will carry the authenticated cookies
        user: Normalized identifier (see normalize_user)
        password: Online banking password
    """
    logger.info("login_started", user=mask_identifier(user))

    fields = {
        "origen": "enpp",
        "eai_tipoCP": "up",
        "eai_user": user,
        "eai_password": password,
    }
    session.post(settings.bank_api_base + LOGIN_ENDPOINT, fields=fields, operation="login")

    logger.info("login_completed", user=mask_identifier(user), cookie_count=len(session.cookies))
