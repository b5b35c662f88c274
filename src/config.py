"""
src/config.py
"""


import os
from enum import Enum
from pathlib import Path
from typing import Dict, Optional
from dotenv import load_dotenv


load_dotenv()


class Role(str, Enum):

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    GENERAL_STAFF = "general_staff"

class Permission(str, Enum):

    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    MANAGE_USERS = "manage_users"
    MANAGE_ROLES = "manage_roles"
    VIEW_REPORTS = "view_reports"
    EXPORT_DATA = "export_data"
    MANAGE_SETTINGS = "manage_settings"

class Modal(str, Enum):
    """Every dialog a collection view can open. Only one is open at a time."""

    ADD_SALES = "AddSales"
    ADD_INVOICE = "AddInvoice"
    VIEW_ORDER = "ViewOrder"
    EDIT_ORDER = "EditOrder"
    EDIT_INVOICE = "EditInvoice"
    ADD_PRODUCT = "AddProduct"
    EDIT_PRODUCT = "EditProduct"
    ADD_CLIENT = "AddClient"
    EDIT_CLIENT = "EditClient"
    ADD_REPORT = "AddReport"

class SortDirection(str, Enum):

    ASC = "asc"
    DESC = "desc"

class Currency(str, Enum):

    USD = "USD"
    GBP = "GBP"
    EUR = "EUR"


# Defaults
DEFAULT_CURRENCY: Currency = Currency.USD
DEFAULT_PAGE_SIZE: int = 10
AUDIT_LOG_LIMIT: int = 1000                 # Most-recent entries kept
AUDIT_LOG_KEY: str = "logs"
TOKEN_KEY: str = "auth_token"
USER_KEY: str = "user"
CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "GBP": "£",
    "EUR": "€"
}

# Environment
ROOT_DIR = Path(__file__).resolve().parents[1]
API_URL: Optional[str] = os.environ.get("BACKOFFICE_API_URL")   # unset -> in-memory backend
STATE_PATH = Path(os.environ.get("BACKOFFICE_STATE_PATH", ROOT_DIR / "data" / "state.json"))
WORKSPACE_PATH = Path(os.environ.get("BACKOFFICE_WORKSPACE_PATH", ROOT_DIR / "data" / "workspace.json"))
REQUEST_TIMEOUT: float = float(os.environ.get("BACKOFFICE_TIMEOUT", "10"))
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")


def format_money(amount: float, currency: Currency = DEFAULT_CURRENCY) -> str:
    """Very simple currency formatter. Unknown codes are printed after the amount."""

    code = getattr(currency, "value", currency)
    sym = CURRENCY_SYMBOLS.get(code)

    if sym is None:
        return f"{amount:,.2f} {code}"

    return f"{sym}{amount:,.2f}"
# EOF
