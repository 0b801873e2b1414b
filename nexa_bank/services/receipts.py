from __future__ import annotations

import base64
from typing import Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from ..models import TransactionResponse, UserResponse


class ReceiptRenderer:
    """Renders a completed transaction into an HTML receipt document."""

    template_name = "receipt.html"

    def __init__(
        self,
        bank_name: str = "NexaBank",
        currency_symbol: str = "₦",
        environment: Optional[Environment] = None,
    ) -> None:
        self.bank_name = bank_name
        self.currency_symbol = currency_symbol
        self.environment = environment or Environment(
            loader=PackageLoader("nexa_bank", "templates"),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, transaction: TransactionResponse, account: UserResponse) -> bytes:
        template = self.environment.get_template(self.template_name)
        source = account.accounts[0] if account.accounts else None
        document = template.render(
            bank_name=self.bank_name,
            currency_symbol=self.currency_symbol,
            transaction=transaction,
            source=source,
        )
        return document.encode("utf-8")

    def render_base64(self, transaction: TransactionResponse, account: UserResponse) -> str:
        return base64.b64encode(self.render(transaction, account)).decode("ascii")
