from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlmodel import Session, select

from ..core.errors import AccountNotFoundError, InsufficientFundsError
from ..models import AccountModel, LinkedAccountModel, TransactionModel


class AccountRepository:
    """Thin data access layer around the SQLModel session.

    Nothing here commits; the calling service owns the unit of work.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # Account operations -------------------------------------------------
    def add_account(self, **fields: Any) -> AccountModel:
        account = AccountModel(**fields)
        self.session.add(account)
        self.session.flush()
        self.session.refresh(account)
        return account

    def get_account(self, account_id: UUID) -> Optional[AccountModel]:
        return self.session.get(AccountModel, account_id)

    def get_account_by_email(self, email: str) -> Optional[AccountModel]:
        stmt = select(AccountModel).where(AccountModel.email == email)
        return self.session.exec(stmt).first()

    def find_identity_conflicts(
        self,
        *,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        bvn: Optional[str] = None,
        exclude_id: Optional[UUID] = None,
    ) -> list[str]:
        """Return the unique field names already taken by another account."""
        wanted = {"email": email, "phone": phone, "bvn": bvn}
        clauses = [
            getattr(AccountModel, field) == value
            for field, value in wanted.items()
            if value is not None
        ]
        if not clauses:
            return []

        stmt = select(AccountModel).where(or_(*clauses))
        if exclude_id is not None:
            stmt = stmt.where(AccountModel.id != exclude_id)

        conflicts: list[str] = []
        for account in self.session.exec(stmt):
            for field, value in wanted.items():
                if value is not None and getattr(account, field) == value and field not in conflicts:
                    conflicts.append(field)
        return conflicts

    def update_balance(self, account_id: UUID, delta: int) -> AccountModel:
        """Apply ``delta`` in one conditional UPDATE; the row only changes if
        the resulting balance stays non-negative."""
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .where(AccountModel.balance + delta >= 0)
            .values(balance=AccountModel.balance + delta)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        account = self.session.get(AccountModel, account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        if result.rowcount == 0:
            raise InsufficientFundsError("Insufficient balance")
        self.session.refresh(account)
        return account

    # Linked bank accounts -----------------------------------------------
    def add_linked_account(
        self,
        *,
        account_id: UUID,
        account_number: str,
        account_name: str,
        bank_name: str,
        position: int = 0,
    ) -> LinkedAccountModel:
        linked = LinkedAccountModel(
            account_id=account_id,
            account_number=account_number,
            account_name=account_name,
            bank_name=bank_name,
            position=position,
        )
        self.session.add(linked)
        self.session.flush()
        return linked

    def account_number_exists(self, account_number: str) -> bool:
        stmt = select(LinkedAccountModel.id).where(
            LinkedAccountModel.account_number == account_number
        )
        return self.session.exec(stmt).first() is not None

    def list_linked_accounts(self, account_id: UUID) -> list[LinkedAccountModel]:
        stmt = (
            select(LinkedAccountModel)
            .where(LinkedAccountModel.account_id == account_id)
            .order_by(LinkedAccountModel.position)
        )
        return list(self.session.exec(stmt))

    # Transactions -------------------------------------------------------
    def add_transaction(self, **fields: Any) -> TransactionModel:
        transaction = TransactionModel(**fields)
        self.session.add(transaction)
        self.session.flush()
        self.session.refresh(transaction)
        return transaction

    def reference_exists(self, reference: str) -> bool:
        stmt = select(TransactionModel.id).where(TransactionModel.reference == reference)
        return self.session.exec(stmt).first() is not None

    def get_transaction(self, account_id: UUID, transaction_id: UUID) -> Optional[TransactionModel]:
        stmt = (
            select(TransactionModel)
            .where(TransactionModel.id == transaction_id)
            .where(TransactionModel.account_id == account_id)
        )
        return self.session.exec(stmt).first()

    def list_transactions(self, account_id: UUID, limit: int = 50) -> list[TransactionModel]:
        stmt = (
            select(TransactionModel)
            .where(TransactionModel.account_id == account_id)
            .order_by(TransactionModel.created_at.desc())
            .limit(limit)
        )
        return list(self.session.exec(stmt))
