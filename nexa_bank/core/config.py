from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class LedgerPolicy:
    """Money-movement constants handed to the ledger service at construction.

    Thresholds are in major units, the fee in minor units.
    """

    transfer_fee: int = 50
    airtime_minimum: Decimal = Decimal("50")
    bill_minimum: Decimal = Decimal("100")
    opening_balance: Decimal = Decimal("200000")
    minor_per_major: int = 100
    reference_prefix: str = "NEXA"
    welcome_prefix: str = "WELCOME"
    reference_attempts: int = 3


class Settings(BaseSettings):
    app_name: str = "NexaBank API"
    bank_name: str = "NexaBank"
    database_url: str = "sqlite:///nexa_bank.db"
    database_busy_timeout: float = 30.0
    log_level: str = "INFO"

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    token_expire_minutes: int = 24 * 60
    inactivity_timeout_minutes: int = 30
    otp_expire_minutes: int = 5
    hash_rounds: int = 12

    transfer_fee: int = 50
    airtime_minimum: Decimal = Decimal("50")
    bill_minimum: Decimal = Decimal("100")
    opening_balance: Decimal = Decimal("200000")
    reference_prefix: str = "NEXA"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NEXA_",
        extra="ignore",
    )

    def ledger_policy(self) -> LedgerPolicy:
        return LedgerPolicy(
            transfer_fee=self.transfer_fee,
            airtime_minimum=self.airtime_minimum,
            bill_minimum=self.bill_minimum,
            opening_balance=self.opening_balance,
            reference_prefix=self.reference_prefix,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
