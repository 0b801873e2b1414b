from .accounts import AccountService
from .catalog import CatalogProvider
from .ledger import LedgerService, RecipientDirectory
from .notifications import LoggingNotifier
from .receipts import ReceiptRenderer
from .repository import AccountRepository

__all__ = [
    "AccountRepository",
    "AccountService",
    "CatalogProvider",
    "LedgerService",
    "LoggingNotifier",
    "ReceiptRenderer",
    "RecipientDirectory",
]
