"""
Tests for snapshot records and snapshot loading.
"""

import json
from datetime import date

import pytest
import yaml
from cashflowlab.core.errors import ConfigError
from cashflowlab.core.kinds import Cat, DayMode, Frequency, TxKind
from cashflowlab.core.loader import dump_snapshot, load_config, load_snapshot
from cashflowlab.core.records import (
    Account,
    Budget,
    Entity,
    GlobalSettings,
    Lease,
    Loan,
    Snapshot,
    Transaction,
)

STATE = {
    "entities": [
        {"id": "h", "name": "Holding"},
        {"id": "o", "name": "OpCo", "parentId": "h", "ownershipPercentage": 60},
    ],
    "accounts": [
        {"id": "acc", "entityId": "o", "bankName": "Leumi", "openingBalance": 2500.5}
    ],
    "transactions": [
        {
            "id": "t1",
            "entityId": "o",
            "type": "income",
            "category": "Customers",
            "description": "Consulting",
            "date": "2026-02-03T00:00:00.000Z",
            "amount": 1200,
            "includesVat": True,
            "isRecurring": True,
            "frequency": "Quarterly",
            "recurringDayMode": "LastDay",
        },
        {
            "id": "t2",
            "entityId": "o",
            "type": "expense",
            "category": "Asset Purchase",
            "description": "Land",
            "date": "2026-05-01",
            "amount": 1000,
            "milestones": [
                {"id": "m1", "description": "Deposit", "amount": 400, "date": "2026-05-01"},
                {"id": "m2", "description": "Balance", "amount": 600, "date": "2026-09-01"},
            ],
        },
    ],
    "loans": [
        {
            "id": "l1",
            "entityId": "o",
            "name": "Bridge",
            "principal": 50000,
            "spread": 1.5,
            "startDate": "2026-01-01",
            "endDate": "2027-01-01",
        }
    ],
    "leases": [
        {
            "id": "ls1",
            "entityId": "o",
            "tenantName": "Acme",
            "property": "Tower",
            "netAmount": 8000,
            "frequency": "Monthly",
            "paymentDay": 5,
            "startDate": "2026-01-01",
            "endDate": "2028-12-31",
            "leasedSqm": 100,
            "ratePerSqm": 80,
        }
    ],
    "budgets": [
        {
            "id": "b1",
            "entityId": "o",
            "category": "Rent",
            "annualBudget": 96000,
            "manualActualYTD": 16000,
        }
    ],
    "settings": {"primeRate": 6.0, "vatRate": 18, "cpi": 104.2},
}


class TestRecordParsing:
    def test_camel_case_keys(self):
        snapshot = Snapshot.from_dict(STATE)
        opco = snapshot.entity("o")
        assert opco.parent_id == "h"
        assert opco.ownership_percentage == 60.0
        assert snapshot.accounts_of("o")[0].opening_balance == 2500.5
        assert snapshot.settings == GlobalSettings(prime_rate=6.0, vat_rate=18.0, cpi=104.2)
        assert snapshot.budgets[0].manual_actual_ytd == 16000.0

    def test_transaction_fields(self):
        tx = Snapshot.from_dict(STATE).transactions[0]
        assert tx.kind is TxKind.INCOME
        assert tx.date == date(2026, 2, 3)
        assert tx.frequency is Frequency.QUARTERLY
        assert tx.day_mode is DayMode.LAST_DAY
        assert tx.includes_vat and tx.is_recurring and tx.is_active
        assert not tx.has_milestones

    def test_asset_deal_milestones(self):
        deal = Snapshot.from_dict(STATE).transactions[1]
        assert deal.is_asset_deal
        assert deal.has_milestones
        assert [m.amount for m in deal.milestones] == [400.0, 600.0]
        assert deal.milestones[1].date == date(2026, 9, 1)

    def test_loan_defaults(self):
        loan = Loan.from_dict(STATE["loans"][0])
        assert loan.interest_frequency is Frequency.MONTHLY
        assert loan.principal_frequency is Frequency.ONE_TIME
        assert loan.is_active

    def test_lease_area_aliases(self):
        lease = Lease.from_dict(STATE["leases"][0])
        assert lease.derived_net_amount() == 8000.0
        assert lease.lease_type == Cat.RENT
        assert lease.payment_day == 5

    def test_non_finite_numbers_become_zero(self):
        account = Account.from_dict(
            {"id": "a", "entityId": "e", "openingBalance": float("nan")}
        )
        assert account.opening_balance == 0.0

    def test_missing_id_raises(self):
        with pytest.raises(ConfigError, match="missing required field 'id'"):
            Entity.from_dict({"name": "Nameless"})

    def test_bad_date_raises(self):
        with pytest.raises(ConfigError):
            Transaction.from_dict(
                {"id": "t", "entityId": "e", "date": "yesterday", "amount": 1}
            )

    def test_unknown_frequency_raises(self):
        data = dict(STATE["leases"][0], frequency="Fortnightly")
        with pytest.raises(ConfigError, match="Unknown frequency"):
            Lease.from_dict(data)

    def test_snapshot_requires_mapping(self):
        with pytest.raises(ConfigError):
            Snapshot.from_dict(["not", "a", "mapping"])


class TestSnapshot:
    def test_lists_become_tuples(self):
        snapshot = Snapshot(entities=[Entity(id="a", name="A")])
        assert isinstance(snapshot.entities, tuple)

    def test_replace_leaves_original_untouched(self):
        snapshot = Snapshot.from_dict(STATE)
        edited = snapshot.replace(budgets=(Budget("b2", "h", Cat.SUPPLIERS, 10.0),))
        assert snapshot.budgets[0].id == "b1"
        assert edited.budgets[0].id == "b2"
        assert edited.entities == snapshot.entities

    def test_lookup_helpers(self):
        snapshot = Snapshot.from_dict(STATE)
        assert snapshot.entity_ids() == ["h", "o"]
        assert snapshot.entity("missing") is None
        assert snapshot.accounts_of("h") == []


class TestLoader:
    def test_load_yaml_with_state_wrapper(self, tmp_path):
        path = tmp_path / "group.yaml"
        path.write_text(yaml.safe_dump({"version": 3, "state": STATE}), encoding="utf-8")
        snapshot = load_snapshot(path)
        assert snapshot == Snapshot.from_dict(STATE)

    def test_load_json_and_mapping(self, tmp_path):
        path = tmp_path / "group.json"
        path.write_text(json.dumps(STATE), encoding="utf-8")
        assert load_snapshot(path) == load_snapshot(STATE)

    def test_dump_then_load(self, tmp_path):
        snapshot = Snapshot.from_dict(STATE)
        path = dump_snapshot(snapshot, tmp_path / "out.json")
        assert load_snapshot(path) == snapshot

    def test_parse_error_is_config_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Could not parse"):
            load_snapshot(path)

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "group.txt"
        path.write_text("entities: []", encoding="utf-8")
        with pytest.raises(ConfigError, match="Unsupported snapshot format"):
            load_snapshot(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "nope.yaml")

    def test_load_config_section(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(
            yaml.safe_dump({"config": {"min_injection": 0, "vat_payment_day": 20}}),
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.min_injection == 0
        assert cfg.vat_payment_day == 20

    def test_load_config_rejects_unknown_keys(self):
        with pytest.raises(ConfigError):
            load_config({"config": {"vat_day": 20}})
