from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from backoffice.core.transaction import unit_of_work
from backoffice.models import JournalEntry, JournalEntryLine, JournalEntryReferenceType
from backoffice.services import ledger as ledger_service
from backoffice.services.ledger import JournalLine, validate_lines
from backoffice.utils.errors import LedgerImbalance, NotFoundError, ValidationError


def _post(accounts, lines, **overrides):
    with unit_of_work() as db:
        return ledger_service.post_journal_entry(
            db,
            entry_date=overrides.get("entry_date", datetime(2026, 1, 15, tzinfo=UTC)),
            reference_type=overrides.get("reference_type", JournalEntryReferenceType.ADJUSTMENT),
            reference_id=overrides.get("reference_id"),
            actor_id=overrides.get("actor_id"),
            description=overrides.get("description", "test posting"),
            lines=lines,
        )


def _row_counts(db_session):
    entries = db_session.scalar(select(func.count()).select_from(JournalEntry))
    lines = db_session.scalar(select(func.count()).select_from(JournalEntryLine))
    return entries, lines


def test_balanced_entry_is_posted(db_session, ledger_accounts):
    cash, equity = ledger_accounts["cash"], ledger_accounts["equity"]

    entry = _post(
        ledger_accounts,
        [
            {"chart_of_account_id": cash.id, "debit": 100, "credit": 0},
            {"chart_of_account_id": equity.id, "debit": 0, "credit": 100},
        ],
        reference_id=42,
    )

    stored = db_session.get(JournalEntry, entry.id)
    assert stored.total_debit == Decimal("100.00")
    assert stored.total_credit == Decimal("100.00")
    assert stored.reference_id == "42"
    lines = db_session.scalars(
        select(JournalEntryLine).where(JournalEntryLine.journal_entry_id == entry.id)
    ).all()
    assert sorted((line.chart_of_account_id, line.debit, line.credit) for line in lines) == sorted(
        [(cash.id, Decimal("100.00"), Decimal("0.00")), (equity.id, Decimal("0.00"), Decimal("100.00"))]
    )


def test_unbalanced_entry_raises_and_persists_nothing(db_session, ledger_accounts):
    cash, equity = ledger_accounts["cash"], ledger_accounts["equity"]

    with pytest.raises(LedgerImbalance) as excinfo:
        _post(
            ledger_accounts,
            [
                JournalLine(chart_of_account_id=cash.id, debit=Decimal("100")),
                JournalLine(chart_of_account_id=equity.id, credit=Decimal("90")),
            ],
        )

    assert excinfo.value.total_debit == Decimal("100")
    assert excinfo.value.total_credit == Decimal("90")
    assert "100.00" in excinfo.value.message and "90.00" in excinfo.value.message
    assert _row_counts(db_session) == (0, 0)


@pytest.mark.parametrize(
    ("debit", "credit", "balanced"),
    [
        ("100.00", "100.00", True),
        ("100.0005", "100.0000", True),
        ("100.001", "100.000", True),
        ("100.002", "100.000", False),
        ("0.01", "0.00", False),
        ("12.345", "12.3449", False),
    ],
)
def test_balance_tolerance(db_session, ledger_accounts, debit, credit, balanced):
    lines = [
        {"chart_of_account_id": ledger_accounts["cash"].id, "debit": debit},
        {"chart_of_account_id": ledger_accounts["equity"].id, "credit": credit},
    ]
    if balanced:
        _post(ledger_accounts, lines)
        assert _row_counts(db_session) == (1, 2)
    else:
        with pytest.raises(LedgerImbalance):
            _post(ledger_accounts, lines)
        assert _row_counts(db_session) == (0, 0)


def test_totals_are_computed_from_lines():
    _, total_debit, total_credit = validate_lines(
        [
            {"chart_of_account_id": 1, "debit": "60.10"},
            {"chart_of_account_id": 2, "debit": "39.90"},
            {"chart_of_account_id": 3, "credit": "100"},
        ]
    )
    assert total_debit == Decimal("100.00")
    assert total_credit == Decimal("100")


def test_sub_cent_lines_must_balance_once_rounded(db_session, ledger_accounts):
    cash, bank, equity = ledger_accounts["cash"], ledger_accounts["bank"], ledger_accounts["equity"]
    lines = [
        {"chart_of_account_id": cash.id, "debit": "0.005"},
        {"chart_of_account_id": bank.id, "debit": "0.005"},
        {"chart_of_account_id": equity.id, "credit": "0.010"},
    ]

    with pytest.raises(LedgerImbalance) as excinfo:
        _post(ledger_accounts, lines)

    assert excinfo.value.total_debit == Decimal("0.02")
    assert excinfo.value.total_credit == Decimal("0.01")
    assert _row_counts(db_session) == (0, 0)


def test_stored_lines_match_header_totals(db_session, ledger_accounts):
    cash, equity = ledger_accounts["cash"], ledger_accounts["equity"]
    entry = _post(
        ledger_accounts,
        [
            {"chart_of_account_id": cash.id, "debit": "33.3349"},
            {"chart_of_account_id": equity.id, "credit": "33.3340"},
        ],
    )

    lines = db_session.scalars(
        select(JournalEntryLine).where(JournalEntryLine.journal_entry_id == entry.id)
    ).all()
    assert sum(line.debit for line in lines) == entry.total_debit == Decimal("33.33")
    assert sum(line.credit for line in lines) == entry.total_credit == Decimal("33.33")


@pytest.mark.parametrize(
    "lines",
    [
        [],
        [{"chart_of_account_id": 1, "debit": "10", "credit": "10"}],
        [{"chart_of_account_id": 1, "debit": "-5"}, {"chart_of_account_id": 2, "debit": "5"}],
        [{"chart_of_account_id": 1, "debit": "abc"}],
        [{"debit": "5"}, {"chart_of_account_id": 2, "credit": "5"}],
    ],
    ids=["empty", "both-sides", "negative", "not-a-number", "missing-account"],
)
def test_malformed_lines_are_rejected(lines):
    with pytest.raises(ValidationError) as excinfo:
        validate_lines(lines)
    assert not isinstance(excinfo.value, LedgerImbalance)


def test_unknown_account_is_rejected(db_session, ledger_accounts):
    with pytest.raises(NotFoundError) as excinfo:
        _post(
            ledger_accounts,
            [
                {"chart_of_account_id": ledger_accounts["cash"].id, "debit": 10},
                {"chart_of_account_id": 999_999, "credit": 10},
            ],
        )
    assert excinfo.value.details["chart_of_account_ids"] == [999_999]
    assert _row_counts(db_session) == (0, 0)


def test_reverse_journal_entry_swaps_sides(db_session, ledger_accounts):
    cash, equity = ledger_accounts["cash"], ledger_accounts["equity"]
    original = _post(
        ledger_accounts,
        [
            {"chart_of_account_id": cash.id, "debit": "250.00", "memo": "capital"},
            {"chart_of_account_id": equity.id, "credit": "250.00"},
        ],
    )

    with unit_of_work() as db:
        reversal = ledger_service.reverse_journal_entry(db, original.id, actor_id=None)

    assert reversal.reversal_of_id == original.id
    assert reversal.reference_type == original.reference_type
    with unit_of_work() as db:
        assert ledger_service.account_balance(db, cash.id) == Decimal("0.00")
        assert ledger_service.account_balance(db, equity.id) == Decimal("0.00")

    with pytest.raises(ValidationError):
        with unit_of_work() as db:
            ledger_service.reverse_journal_entry(db, original.id, actor_id=None)
    assert _row_counts(db_session) == (2, 4)


def test_reverse_missing_entry(ledger_accounts):
    with pytest.raises(NotFoundError):
        with unit_of_work() as db:
            ledger_service.reverse_journal_entry(db, 12345, actor_id=None)


def test_account_balance(ledger_accounts):
    cash, bank, equity = ledger_accounts["cash"], ledger_accounts["bank"], ledger_accounts["equity"]
    _post(
        ledger_accounts,
        [{"chart_of_account_id": cash.id, "debit": 500}, {"chart_of_account_id": equity.id, "credit": 500}],
    )
    _post(
        ledger_accounts,
        [{"chart_of_account_id": bank.id, "debit": 120}, {"chart_of_account_id": cash.id, "credit": 120}],
    )

    with unit_of_work() as db:
        assert ledger_service.account_balance(db, cash.id) == Decimal("380.00")
        assert ledger_service.account_balance(db, bank.id) == Decimal("120.00")
        assert ledger_service.account_balance(db, equity.id) == Decimal("-500.00")
