"""Static reference data for transfers and bill payments."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

from ..core.errors import CatalogEntryNotFoundError


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    name: str


@dataclass(frozen=True)
class DataPlan(CatalogEntry):
    provider: str
    price: int  # minor units
    validity: str


BANKS = (
    CatalogEntry("044", "Access Bank"),
    CatalogEntry("023", "Citibank Nigeria"),
    CatalogEntry("050", "Ecobank Nigeria"),
    CatalogEntry("070", "Fidelity Bank"),
    CatalogEntry("011", "First Bank of Nigeria"),
    CatalogEntry("214", "First City Monument Bank"),
    CatalogEntry("058", "Guaranty Trust Bank"),
    CatalogEntry("030", "Heritage Bank"),
    CatalogEntry("301", "Jaiz Bank"),
    CatalogEntry("082", "Keystone Bank"),
    CatalogEntry("50211", "Kuda Bank"),
    CatalogEntry("999992", "OPay"),
    CatalogEntry("076", "Polaris Bank"),
    CatalogEntry("101", "Providus Bank"),
    CatalogEntry("221", "Stanbic IBTC Bank"),
    CatalogEntry("068", "Standard Chartered Bank"),
    CatalogEntry("232", "Sterling Bank"),
    CatalogEntry("032", "Union Bank of Nigeria"),
    CatalogEntry("033", "United Bank for Africa"),
    CatalogEntry("215", "Unity Bank"),
    CatalogEntry("035", "Wema Bank"),
    CatalogEntry("057", "Zenith Bank"),
)

TELCOS = (
    CatalogEntry("mtn", "MTN"),
    CatalogEntry("airtel", "Airtel"),
    CatalogEntry("glo", "Glo"),
    CatalogEntry("9mobile", "9mobile"),
)

BILL_TYPES = (
    CatalogEntry("airtime", "Airtime"),
    CatalogEntry("data", "Data"),
    CatalogEntry("electricity", "Electricity"),
    CatalogEntry("cable", "Cable TV"),
)

ELECTRICITY_PROVIDERS = (
    CatalogEntry("ikedc", "IKEDC"),
    CatalogEntry("ekedc", "EKEDC"),
    CatalogEntry("phed", "PHED"),
    CatalogEntry("kedco", "KEDCO"),
)

CABLE_PROVIDERS = (
    CatalogEntry("dstv", "DSTV"),
    CatalogEntry("gotv", "GOTV"),
    CatalogEntry("startimes", "StarTimes"),
)

DATA_PLANS = (
    DataPlan("mtn-1gb", "MTN 1GB", provider="mtn", price=50000, validity="30 days"),
    DataPlan("airtel-1gb", "Airtel 1GB", provider="airtel", price=50000, validity="30 days"),
    DataPlan("glo-1gb", "Glo 1GB", provider="glo", price=45000, validity="30 days"),
    DataPlan("9mobile-1gb", "9mobile 1GB", provider="9mobile", price=50000, validity="30 days"),
)

# Provider registry used by each bill type.
BILL_PROVIDER_CATEGORIES = {
    "airtime": "telcos",
    "data": "telcos",
    "electricity": "electricity_providers",
    "cable": "cable_providers",
}


class CatalogProvider:
    """Read-only lookup over the reference tables."""

    def __init__(self, tables: Optional[Mapping[str, tuple[CatalogEntry, ...]]] = None) -> None:
        if tables is None:
            tables = {
                "banks": BANKS,
                "telcos": TELCOS,
                "bill_types": BILL_TYPES,
                "electricity_providers": ELECTRICITY_PROVIDERS,
                "cable_providers": CABLE_PROVIDERS,
                "data_plans": DATA_PLANS,
            }
        self._tables = {
            category: {entry.id: entry for entry in entries}
            for category, entries in tables.items()
        }

    def lookup(self, category: str, entry_id: str) -> CatalogEntry:
        entries = self._tables.get(category)
        if entries is None:
            raise CatalogEntryNotFoundError(f"Unknown catalog {category}")
        entry = entries.get(entry_id)
        if entry is None:
            raise CatalogEntryNotFoundError(f"No {category} entry with id {entry_id}")
        return entry

    def provider_for_bill(self, bill_type: str, provider_id: str) -> CatalogEntry:
        category = BILL_PROVIDER_CATEGORIES.get(bill_type)
        if category is None:
            raise CatalogEntryNotFoundError(f"No provider registry for {bill_type}")
        return self.lookup(category, provider_id)

    def entries(self, category: str) -> list[CatalogEntry]:
        return list(self._tables.get(category, {}).values())

    def options(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "telcos": [asdict(entry) for entry in self.entries("telcos")],
            "bill_types": [asdict(entry) for entry in self.entries("bill_types")],
            "electricity_providers": [
                asdict(entry) for entry in self.entries("electricity_providers")
            ],
            "cable_providers": [asdict(entry) for entry in self.entries("cable_providers")],
            "data_plans": [asdict(entry) for entry in self.entries("data_plans")],
        }
