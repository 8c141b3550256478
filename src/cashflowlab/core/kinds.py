"""
CashFlowLab kind constants and closed classifications.
"""

from __future__ import annotations

from enum import Enum

from .errors import ConfigError


class K:
    """
    Source-kind discriminators for the expander registry.

    Each constant names one family of domain records that is turned into
    dated cash events before the daily loop runs.
    """

    # Schedules
    S_LOAN_AMORTIZING = "s.loan.amortizing"

    # Flows
    F_LEASE_INCOME = "f.lease.income"
    F_ASSET_MILESTONES = "f.asset.milestones"

    @classmethod
    def all(cls) -> tuple[str, ...]:
        return (cls.S_LOAN_AMORTIZING, cls.F_LEASE_INCOME, cls.F_ASSET_MILESTONES)


class Frequency(str, Enum):
    """Billing/recurrence cadence shared by transactions, loans and leases."""

    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUALLY = "SemiAnnually"
    ANNUALLY = "Annually"
    ONE_TIME = "OneTime"

    @property
    def months(self) -> int:
        """Calendar step in months (0 for one-time)."""
        return _FREQUENCY_MONTHS[self]

    @classmethod
    def parse(cls, value: str | Frequency | None, default: Frequency | None = None):
        if value is None or value == "":
            if default is None:
                raise ConfigError("Frequency is required")
            return default
        if isinstance(value, Frequency):
            return value
        key = str(value).replace("_", "").replace("-", "").replace(" ", "").lower()
        for member in cls:
            if member.value.lower() == key or member.name.replace("_", "").lower() == key:
                return member
        raise ConfigError(f"Unknown frequency: {value!r}")


_FREQUENCY_MONTHS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.SEMI_ANNUALLY: 6,
    Frequency.ANNUALLY: 12,
    Frequency.ONE_TIME: 0,
}


class DayMode(str, Enum):
    """Day-selection rule for recurring transactions."""

    SAME_AS_START = "SameAsStart"
    SPECIFIC = "Specific"
    LAST_DAY = "LastDay"

    @classmethod
    def parse(cls, value: str | DayMode | None) -> DayMode:
        if value is None or value == "":
            return cls.SAME_AS_START
        if isinstance(value, DayMode):
            return value
        key = str(value).replace("_", "").replace("-", "").replace(" ", "").lower()
        for member in cls:
            if member.value.lower() == key or member.name.replace("_", "").lower() == key:
                return member
        raise ConfigError(f"Unknown day mode: {value!r}")


class TxKind(str, Enum):
    """Direction/kind of an entered transaction."""

    INCOME = "income"
    EXPENSE = "expense"
    FINANCIAL = "financial"
    TAX = "tax"
    OPERATIONAL = "operational"
    INTERCOMPANY = "intercompany"

    @classmethod
    def parse(cls, value: str | TxKind | None) -> TxKind:
        if value is None or value == "":
            return cls.EXPENSE
        if isinstance(value, TxKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ConfigError(f"Unknown transaction type: {value!r}") from exc


class LedgerKind(str, Enum):
    """Kind carried by a synthetic ledger row."""

    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    TAX = "tax"
    INTERCOMPANY = "intercompany"

    @classmethod
    def from_tx_kind(cls, kind: TxKind) -> LedgerKind:
        if kind is TxKind.FINANCIAL:
            return cls.FINANCIAL
        if kind is TxKind.INTERCOMPANY:
            return cls.INTERCOMPANY
        return cls.OPERATIONAL


class Cat:
    # === Entered categories: income side ===
    CUSTOMERS = "Customers"
    ASSET_SALE = "Asset Sale"
    INTERCOMPANY_SETTLEMENT = "Intercompany Settlement"
    OWNER_INJECTION = "Owner Injection"
    RENT = "Rent"
    BANKS = "Banks"
    VAT = "VAT"
    MISC = "Miscellaneous"

    # === Entered categories: expense side ===
    SUPPLIERS = "Suppliers"
    ASSET_PURCHASE = "Asset Purchase"
    INCOME_TAX = "Income Tax"
    MANAGEMENT_FEES = "Management Fees"
    INVESTOR_DISTRIBUTION = "Investor Distribution"
    INSTITUTIONS = "Institutions"
    GENERAL_ADMIN = "General & Administrative"
    MARKETING = "Marketing"
    SALARIES = "Salaries"
    INSURANCE = "Insurance"
    VEHICLES = "Vehicles"

    # === Engine-generated categories ===
    LOAN_RECEIPT = "Loan Receipt"
    LOAN_REPAYMENT = "Loan Repayment"
    BANK_INTEREST = "Bank Interest"
    OWNER_EQUITY = "Owner Equity"
    INVESTOR_EQUITY = "Investor Equity"
    CREDIT_BALANCING = "Credit Balancing"
    INTERCOMPANY = "Intercompany"

    INCOME = (
        CUSTOMERS,
        ASSET_SALE,
        INTERCOMPANY_SETTLEMENT,
        OWNER_INJECTION,
        RENT,
        BANKS,
        VAT,
        MISC,
    )
    EXPENSE = (
        SUPPLIERS,
        ASSET_PURCHASE,
        VAT,
        INCOME_TAX,
        MANAGEMENT_FEES,
        INVESTOR_DISTRIBUTION,
        INSTITUTIONS,
        BANKS,
        INTERCOMPANY_SETTLEMENT,
        RENT,
        GENERAL_ADMIN,
        MARKETING,
        SALARIES,
        INSURANCE,
        VEHICLES,
        MISC,
    )
    ASSET_DEALS = (ASSET_PURCHASE, ASSET_SALE)

    @classmethod
    def all_categories(cls) -> list[str]:
        """Enumerate the full vocabulary (entered and engine-generated)."""
        seen: list[str] = []
        for cat in (
            *cls.INCOME,
            *cls.EXPENSE,
            cls.LOAN_RECEIPT,
            cls.LOAN_REPAYMENT,
            cls.BANK_INTEREST,
            cls.OWNER_EQUITY,
            cls.INVESTOR_EQUITY,
            cls.CREDIT_BALANCING,
            cls.INTERCOMPANY,
        ):
            if cat not in seen:
                seen.append(cat)
        return seen


class LedgerClass(str, Enum):
    """
    Reporting bucket of a ledger row, assigned once when the row is produced.

    Downstream aggregation (cash-flow matrix, drill-downs, alerts) groups on
    this tag and never re-parses free-text categories.
    """

    RENT_INCOME = "rent_income"
    OTHER_INCOME = "other_income"
    VAT_INCOME = "vat_income"
    SUPPLIERS = "suppliers"
    OTHER_EXPENSE = "other_expense"
    INCOME_TAX = "income_tax"
    VAT_EXPENSE = "vat_expense"
    ASSET_SALE = "asset_sale"
    ASSET_PURCHASE = "asset_purchase"
    LOAN_RECEIPT = "loan_receipt"
    LOAN_REPAYMENT = "loan_repayment"
    INTEREST = "interest"
    CAPITAL = "capital"
    CREDIT_BALANCING = "credit_balancing"

    @property
    def section(self) -> str:
        """Cash-flow statement section: operating, investing, financing or balancing."""
        return _SECTIONS[self]


_SECTIONS = {
    LedgerClass.RENT_INCOME: "operating",
    LedgerClass.OTHER_INCOME: "operating",
    LedgerClass.VAT_INCOME: "operating",
    LedgerClass.SUPPLIERS: "operating",
    LedgerClass.OTHER_EXPENSE: "operating",
    LedgerClass.INCOME_TAX: "operating",
    LedgerClass.VAT_EXPENSE: "operating",
    LedgerClass.ASSET_SALE: "investing",
    LedgerClass.ASSET_PURCHASE: "investing",
    LedgerClass.LOAN_RECEIPT: "financing",
    LedgerClass.LOAN_REPAYMENT: "financing",
    LedgerClass.INTEREST: "financing",
    LedgerClass.CAPITAL: "financing",
    LedgerClass.CREDIT_BALANCING: "balancing",
}

_INTEREST_CATEGORIES = (Cat.BANKS, Cat.BANK_INTEREST)
_CAPITAL_CATEGORIES = (
    Cat.OWNER_INJECTION,
    Cat.OWNER_EQUITY,
    Cat.INVESTOR_DISTRIBUTION,
    Cat.INVESTOR_EQUITY,
)
_SUPPLIER_CATEGORIES = (Cat.SUPPLIERS, Cat.INSTITUTIONS)


def classify(category: str, kind: LedgerKind, amount: float) -> LedgerClass:
    """
    Map a ledger row onto its reporting bucket.

    Args:
        category: Category string of the row
        kind: Ledger kind of the row
        amount: Signed amount (positive = inflow)

    Returns:
        The LedgerClass the row belongs to
    """
    cat = category or ""
    if cat == Cat.LOAN_REPAYMENT:
        return LedgerClass.LOAN_REPAYMENT
    if cat == Cat.LOAN_RECEIPT:
        return LedgerClass.LOAN_RECEIPT
    if cat in _INTEREST_CATEGORIES or "interest" in cat.lower():
        return LedgerClass.INTEREST
    if cat in _CAPITAL_CATEGORIES:
        return LedgerClass.CAPITAL
    if cat == Cat.CREDIT_BALANCING:
        return LedgerClass.CREDIT_BALANCING
    if cat == Cat.ASSET_SALE:
        return LedgerClass.ASSET_SALE
    if cat == Cat.ASSET_PURCHASE:
        return LedgerClass.ASSET_PURCHASE

    is_vat = kind is LedgerKind.TAX and cat != Cat.INCOME_TAX or cat == Cat.VAT
    if amount > 0:
        if cat == Cat.RENT:
            return LedgerClass.RENT_INCOME
        if is_vat:
            return LedgerClass.VAT_INCOME
        return LedgerClass.OTHER_INCOME
    if cat in _SUPPLIER_CATEGORIES:
        return LedgerClass.SUPPLIERS
    if cat == Cat.INCOME_TAX:
        return LedgerClass.INCOME_TAX
    if is_vat:
        return LedgerClass.VAT_EXPENSE
    return LedgerClass.OTHER_EXPENSE
