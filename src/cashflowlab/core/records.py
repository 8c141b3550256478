"""
Domain records for CashFlowLab.

The records form one immutable snapshot of the application state: entities,
their bank accounts, transactions, loans, leases, guarantees, tasks, budgets
and global settings. The simulation engine reads a ``Snapshot`` and never
mutates it.

Records can be built directly or from plain mappings (``from_dict``), which
accept both snake_case keys and the camelCase keys used by the dashboard
that produced the data (``parentId``, ``openingBalance``, ...).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Any

from .errors import ConfigError
from .kinds import Cat, DayMode, Frequency, TxKind
from .utils import coerce_date, coerce_optional_date, finite_or_zero

__all__ = [
    "Frequency",
    "DayMode",
    "TxKind",
    "Entity",
    "Account",
    "Milestone",
    "Transaction",
    "Loan",
    "Lease",
    "Guarantee",
    "Task",
    "Budget",
    "GlobalSettings",
    "Snapshot",
]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _pick(data: Mapping[str, Any], name: str, default=None, *aliases: str):
    """Read ``name`` (or its camelCase form, or an alias) from a mapping."""
    for key in (name, _camel(name), *aliases):
        if key in data and data[key] is not None:
            return data[key]
    return default


def _require(data: Mapping[str, Any], name: str, label: str, *aliases: str):
    value = _pick(data, name, None, *aliases)
    if value is None or value == "":
        raise ConfigError(f"{label}: missing required field '{name}'")
    return value


def _num(data: Mapping[str, Any], name: str, default: float = 0.0, *aliases: str):
    return finite_or_zero(_pick(data, name, default, *aliases))


def _opt_num(data: Mapping[str, Any], name: str, *aliases: str) -> float | None:
    value = _pick(data, name, None, *aliases)
    if value is None or value == "":
        return None
    return finite_or_zero(value)


def _flag(data: Mapping[str, Any], name: str, default: bool = False, *aliases: str):
    return bool(_pick(data, name, default, *aliases))


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class _Record:
    """Shared serialization for snapshot records."""

    def to_dict(self) -> dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class Entity(_Record):
    """
    A legal or organizational unit in the ownership forest.

    Attributes:
        id: Unique identifier
        name: Display name
        parent_id: Identifier of the parent entity (``None`` for roots)
        ownership_percentage: Share held by the parent, 0..100
        uncalled_capital: Committed but not yet called capital
        target_balance: Cash level the balancing logic steers towards
        has_tax_advances: Whether monthly income-tax advances are charged
        tax_advance_rate: Advance rate in percent of month-to-date revenue
    """

    id: str
    name: str
    parent_id: str | None = None
    ownership_percentage: float = 100.0
    uncalled_capital: float = 0.0
    target_balance: float = 0.0
    has_tax_advances: bool = False
    tax_advance_rate: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Entity:
        label = f"entity {data.get('name', '?')!r}"
        return cls(
            id=str(_require(data, "id", label)),
            name=str(_pick(data, "name", "")),
            parent_id=_pick(data, "parent_id") or None,
            ownership_percentage=_num(data, "ownership_percentage", 100.0),
            uncalled_capital=_num(data, "uncalled_capital"),
            target_balance=_num(data, "target_balance"),
            has_tax_advances=_flag(data, "has_tax_advances"),
            tax_advance_rate=_num(data, "tax_advance_rate"),
        )


@dataclass(frozen=True)
class Account(_Record):
    """A bank account; the engine pools all accounts of an entity."""

    id: str
    entity_id: str
    bank_name: str = ""
    account_number: str = ""
    nickname: str = ""
    opening_balance: float = 0.0
    credit_limit: float = 0.0
    current_credit_util: float = 0.0
    interest_spread: float = 0.0
    is_tax_account: bool = False
    guarantee_limit: float = 0.0
    manual_guarantee_util: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Account:
        label = f"account {data.get('id', '?')!r}"
        return cls(
            id=str(_require(data, "id", label)),
            entity_id=str(_require(data, "entity_id", label)),
            bank_name=str(_pick(data, "bank_name", "")),
            account_number=str(_pick(data, "account_number", "")),
            nickname=str(_pick(data, "nickname", "")),
            opening_balance=_num(data, "opening_balance"),
            credit_limit=_num(data, "credit_limit"),
            current_credit_util=_num(data, "current_credit_util"),
            interest_spread=_num(data, "interest_spread"),
            is_tax_account=_flag(data, "is_tax_account"),
            guarantee_limit=_num(data, "guarantee_limit"),
            manual_guarantee_util=_num(data, "manual_guarantee_util"),
        )


@dataclass(frozen=True)
class Milestone(_Record):
    """One dated installment of a staged asset deal."""

    id: str
    description: str
    amount: float
    date: date
    percentage: float = 0.0
    days: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Milestone:
        label = f"milestone {data.get('id', '?')!r}"
        return cls(
            id=str(_require(data, "id", label)),
            description=str(_pick(data, "description", "")),
            amount=_num(data, "amount"),
            date=coerce_date(_require(data, "date", label), f"{label} date"),
            percentage=_num(data, "percentage"),
            days=int(_num(data, "days")),
        )


@dataclass(frozen=True)
class Transaction(_Record):
    """
    A financial event entered by the user.

    ``amount`` is always entered positive; the sign is derived from ``kind``
    and ``category`` at simulation time. Recurring transactions repeat
    according to ``frequency`` crossed with ``day_mode``.
    """

    id: str
    entity_id: str
    kind: TxKind
    category: str
    description: str
    date: date
    amount: float
    account_id: str | None = None
    includes_vat: bool = False
    is_recurring: bool = False
    frequency: Frequency | None = None
    day_mode: DayMode = DayMode.SAME_AS_START
    day_in_month: int | None = None
    is_active: bool = True
    is_intercompany: bool = False
    target_entity_id: str | None = None
    target_account_id: str | None = None
    milestones: tuple[Milestone, ...] = ()
    linkage_index_base: float | None = None

    @property
    def is_asset_deal(self) -> bool:
        return self.category in Cat.ASSET_DEALS

    @property
    def has_milestones(self) -> bool:
        return self.is_asset_deal and len(self.milestones) > 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Transaction:
        label = f"transaction {data.get('id', '?')!r}"
        freq = _pick(data, "frequency")
        day_in_month = _pick(data, "day_in_month")
        return cls(
            id=str(_require(data, "id", label)),
            entity_id=str(_require(data, "entity_id", label)),
            kind=TxKind.parse(_pick(data, "kind", None, "type")),
            category=str(_pick(data, "category", "")),
            description=str(_pick(data, "description", "")),
            date=coerce_date(_require(data, "date", label), f"{label} date"),
            amount=_num(data, "amount"),
            account_id=_pick(data, "account_id") or None,
            includes_vat=_flag(data, "includes_vat"),
            is_recurring=_flag(data, "is_recurring"),
            frequency=Frequency.parse(freq) if freq else None,
            day_mode=DayMode.parse(_pick(data, "day_mode", None, "recurringDayMode")),
            day_in_month=int(day_in_month) if day_in_month not in (None, "") else None,
            is_active=_flag(data, "is_active", True),
            is_intercompany=_flag(data, "is_intercompany"),
            target_entity_id=_pick(data, "target_entity_id") or None,
            target_account_id=_pick(data, "target_account_id") or None,
            milestones=tuple(
                Milestone.from_dict(m) for m in _pick(data, "milestones", ()) or ()
            ),
            linkage_index_base=_opt_num(data, "linkage_index_base"),
        )


@dataclass(frozen=True)
class Loan(_Record):
    """
    A term loan described by its contract terms.

    Interest and principal repayment run on independent frequencies;
    ``principal_frequency=OneTime`` is a bullet repayment at ``end_date``.
    """

    id: str
    entity_id: str
    name: str
    principal: float
    spread: float
    start_date: date
    end_date: date
    interest_frequency: Frequency = Frequency.MONTHLY
    principal_frequency: Frequency = Frequency.ONE_TIME
    account_id: str | None = None
    is_active: bool = True
    needs_rollover: bool = False
    rollover_date: date | None = None
    rollover_frequency: Frequency | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Loan:
        label = f"loan {data.get('id', '?')!r}"
        rollover_freq = _pick(data, "rollover_frequency")
        return cls(
            id=str(_require(data, "id", label)),
            entity_id=str(_require(data, "entity_id", label)),
            name=str(_pick(data, "name", "")),
            principal=_num(data, "principal"),
            spread=_num(data, "spread"),
            start_date=coerce_date(_require(data, "start_date", label), f"{label} start"),
            end_date=coerce_date(_require(data, "end_date", label), f"{label} end"),
            interest_frequency=Frequency.parse(
                _pick(data, "interest_frequency"), Frequency.MONTHLY
            ),
            principal_frequency=Frequency.parse(
                _pick(data, "principal_frequency"), Frequency.ONE_TIME
            ),
            account_id=_pick(data, "account_id") or None,
            is_active=_flag(data, "is_active", True),
            needs_rollover=_flag(data, "needs_rollover"),
            rollover_date=coerce_optional_date(_pick(data, "rollover_date")),
            rollover_frequency=Frequency.parse(rollover_freq) if rollover_freq else None,
        )


@dataclass(frozen=True)
class Lease(_Record):
    """A lease billed periodically on a fixed day of month."""

    id: str
    entity_id: str
    tenant_name: str
    property: str
    net_amount: float
    frequency: Frequency
    payment_day: int
    start_date: date
    end_date: date
    lease_type: str = Cat.RENT
    leased_area: float = 0.0
    rate_per_area: float = 0.0
    account_id: str | None = None
    includes_vat: bool = False
    linkage_index_base: float | None = None

    def derived_net_amount(self) -> float:
        """Net amount implied by ``leased_area × rate_per_area``."""
        return self.leased_area * self.rate_per_area

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Lease:
        label = f"lease {data.get('id', '?')!r}"
        return cls(
            id=str(_require(data, "id", label)),
            entity_id=str(_require(data, "entity_id", label)),
            tenant_name=str(_pick(data, "tenant_name", "")),
            property=str(_pick(data, "property", "")),
            net_amount=_num(data, "net_amount"),
            frequency=Frequency.parse(_pick(data, "frequency"), Frequency.MONTHLY),
            payment_day=int(_num(data, "payment_day", 1)) or 1,
            start_date=coerce_date(_require(data, "start_date", label), f"{label} start"),
            end_date=coerce_date(_require(data, "end_date", label), f"{label} end"),
            lease_type=str(_pick(data, "lease_type", Cat.RENT)),
            leased_area=_num(data, "leased_area", 0.0, "leasedSqm"),
            rate_per_area=_num(data, "rate_per_area", 0.0, "ratePerSqm"),
            account_id=_pick(data, "account_id") or None,
            includes_vat=_flag(data, "includes_vat"),
            linkage_index_base=_opt_num(data, "linkage_index_base"),
        )


@dataclass(frozen=True)
class Guarantee(_Record):
    """A bank guarantee; its cost is computed on demand, outside the loop."""

    id: str
    entity_id: str
    beneficiary: str
    amount: float
    issue_date: date
    expiry_date: date
    setup_fee: float = 0.0
    annual_interest_rate: float = 0.0
    account_id: str | None = None
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Guarantee:
        label = f"guarantee {data.get('id', '?')!r}"
        return cls(
            id=str(_require(data, "id", label)),
            entity_id=str(_require(data, "entity_id", label)),
            beneficiary=str(_pick(data, "beneficiary", "")),
            amount=_num(data, "amount"),
            issue_date=coerce_date(_require(data, "issue_date", label), f"{label} issue"),
            expiry_date=coerce_date(
                _require(data, "expiry_date", label), f"{label} expiry"
            ),
            setup_fee=_num(data, "setup_fee"),
            annual_interest_rate=_num(data, "annual_interest_rate"),
            account_id=_pick(data, "account_id") or None,
            notes=str(_pick(data, "notes", "")),
        )


@dataclass(frozen=True)
class Task(_Record):
    id: str
    title: str
    due_date: date
    entity_id: str | None = None
    description: str = ""
    priority: str = "Medium"
    assignee: str = ""
    is_completed: bool = False
    is_recurring: bool = False
    frequency: Frequency | None = None
    day_mode: DayMode = DayMode.SAME_AS_START
    day_in_month: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        label = f"task {data.get('id', '?')!r}"
        freq = _pick(data, "frequency")
        day_in_month = _pick(data, "day_in_month")
        return cls(
            id=str(_require(data, "id", label)),
            title=str(_pick(data, "title", "")),
            due_date=coerce_date(_require(data, "due_date", label), f"{label} due"),
            entity_id=_pick(data, "entity_id") or None,
            description=str(_pick(data, "description", "")),
            priority=str(_pick(data, "priority", "Medium")),
            assignee=str(_pick(data, "assignee", "")),
            is_completed=_flag(data, "is_completed"),
            is_recurring=_flag(data, "is_recurring"),
            frequency=Frequency.parse(freq) if freq else None,
            day_mode=DayMode.parse(_pick(data, "day_mode", None, "recurringDayMode")),
            day_in_month=int(day_in_month) if day_in_month not in (None, "") else None,
        )


@dataclass(frozen=True)
class Budget(_Record):
    id: str
    entity_id: str
    category: str
    annual_budget: float
    manual_actual_ytd: float = 0.0
    property: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Budget:
        label = f"budget {data.get('id', '?')!r}"
        return cls(
            id=str(_require(data, "id", label)),
            entity_id=str(_require(data, "entity_id", label)),
            category=str(_require(data, "category", label)),
            annual_budget=_num(data, "annual_budget"),
            manual_actual_ytd=_num(data, "manual_actual_ytd", 0.0, "manualActualYTD"),
            property=_pick(data, "property") or None,
        )


@dataclass(frozen=True)
class GlobalSettings(_Record):
    """
    Market parameters shared by every entity.

    Attributes:
        prime_rate: Current prime rate in percent
        vat_rate: VAT rate in percent (``None`` falls back to the config default)
        cpi: Current consumer price index, used for linkage
        prev_prime_rate: Prime rate before ``prime_rate_change_date``
        prime_rate_change_date: Cutover day of the scheduled rate change
    """

    prime_rate: float = 6.0
    vat_rate: float | None = 17.0
    cpi: float = 100.0
    prev_prime_rate: float | None = None
    prime_rate_change_date: date | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> GlobalSettings:
        if not data:
            return cls()
        return cls(
            prime_rate=_num(data, "prime_rate", 6.0),
            vat_rate=_opt_num(data, "vat_rate"),
            cpi=_num(data, "cpi", 100.0),
            prev_prime_rate=_opt_num(data, "prev_prime_rate"),
            prime_rate_change_date=coerce_optional_date(
                _pick(data, "prime_rate_change_date"), "prime_rate_change_date"
            ),
        )


def _records(cls, items: Iterable[Mapping[str, Any]] | None) -> tuple:
    out = []
    for item in items or ():
        out.append(item if isinstance(item, cls) else cls.from_dict(item))
    return tuple(out)


@dataclass(frozen=True)
class Snapshot(_Record):
    """
    Immutable application state handed to the simulation engine.

    All collections are tuples; build a new snapshot with ``replace`` to
    model an edit.

    Example:
        ```python
        from cashflowlab.core.records import Snapshot

        snapshot = Snapshot.from_dict({
            "entities": [{"id": "a", "name": "Holding"}],
            "accounts": [{"id": "acc", "entityId": "a", "openingBalance": 1000}],
        })
        ```
    """

    entities: tuple[Entity, ...] = ()
    accounts: tuple[Account, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    loans: tuple[Loan, ...] = ()
    leases: tuple[Lease, ...] = ()
    guarantees: tuple[Guarantee, ...] = ()
    tasks: tuple[Task, ...] = ()
    budgets: tuple[Budget, ...] = ()
    settings: GlobalSettings = field(default_factory=GlobalSettings)

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                object.__setattr__(self, f.name, tuple(value))

    def entity(self, entity_id: str) -> Entity | None:
        for ent in self.entities:
            if ent.id == entity_id:
                return ent
        return None

    def entity_ids(self) -> list[str]:
        return [e.id for e in self.entities]

    def accounts_of(self, entity_id: str) -> list[Account]:
        return [a for a in self.accounts if a.entity_id == entity_id]

    def replace(self, **changes: Any) -> Snapshot:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(changes)
        return Snapshot(**data)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Snapshot:
        if not isinstance(data, Mapping):
            raise ConfigError(f"Snapshot must be a mapping, got {type(data).__name__}")
        return cls(
            entities=_records(Entity, _pick(data, "entities")),
            accounts=_records(Account, _pick(data, "accounts")),
            transactions=_records(Transaction, _pick(data, "transactions")),
            loans=_records(Loan, _pick(data, "loans")),
            leases=_records(Lease, _pick(data, "leases")),
            guarantees=_records(Guarantee, _pick(data, "guarantees")),
            tasks=_records(Task, _pick(data, "tasks")),
            budgets=_records(Budget, _pick(data, "budgets")),
            settings=GlobalSettings.from_dict(_pick(data, "settings")),
        )
