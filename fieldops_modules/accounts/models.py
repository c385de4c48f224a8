"""Settlement account DTOs."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from fieldops_kernel.domain.coercion import coerce_enum
from fieldops_kernel.models.account import AccountType, SettlementAccount


@dataclass(frozen=True)
class AccountInfo:
    account_id: UUID
    company_id: UUID
    name: str
    bank: str | None
    account_type: AccountType
    is_active: bool
    balance: Decimal
    credit_limit: Decimal
    available_limit: Decimal
    closing_day: int | None
    due_day: int | None

    @property
    def used_limit(self) -> Decimal:
        return self.credit_limit - self.available_limit

    @property
    def is_credit_card(self) -> bool:
        return self.account_type == AccountType.CREDIT_CARD

    @classmethod
    def from_row(cls, row: SettlementAccount) -> AccountInfo:
        return cls(
            account_id=row.id,
            company_id=row.company_id,
            name=row.name,
            bank=row.bank,
            account_type=coerce_enum(
                AccountType, row.account_type, AccountType.BANK_ACCOUNT,
                entity="settlement_account", field="account_type", entity_id=row.id,
            ),
            is_active=bool(row.is_active),
            balance=row.balance,
            credit_limit=row.credit_limit,
            available_limit=row.available_limit,
            closing_day=row.closing_day,
            due_day=row.due_day,
        )
