from datetime import date
from decimal import Decimal

import pytest

from ledger.exceptions import ValidationError
from ledger.reports import (
    Period,
    build_report,
    filter_by_period,
    percent_change,
    savings_history,
    search_transactions,
)


def test_percent_change_regular_growth():
    assert percent_change(Decimal("150"), Decimal("100")) == Decimal("50")
    assert percent_change(Decimal("50"), Decimal("100")) == Decimal("-50")


def test_percent_change_without_positive_baseline():
    assert percent_change(Decimal("50"), Decimal("0")) == 100
    assert percent_change(Decimal("0"), Decimal("0")) == 0
    assert percent_change(Decimal("-10"), Decimal("0")) == 0
    assert percent_change(Decimal("20"), Decimal("-40")) == 100


def test_previous_period_rolls_over_january():
    assert Period(2024, 1).previous() == Period(2023, 12)
    assert Period(2024, 7).previous() == Period(2024, 6)
    assert Period(2024).previous() == Period(2023)
    assert Period().previous(today=date(2025, 5, 17)) == Period(2024)


def test_period_validation():
    with pytest.raises(ValidationError):
        Period(month=3)
    with pytest.raises(ValidationError):
        Period.parse("2024", "13")
    with pytest.raises(ValidationError):
        Period.parse("twenty", None)
    assert Period.parse("2024", "") == Period(2024)


def test_days_in_period():
    assert Period(2024, 2).days == 29
    assert Period(2023, 2).days == 28
    assert Period(2024).days == 365
    assert Period().days == 365


def test_filter_by_period(make_txn):
    ledger = [
        make_txn("ADD_BALANCE", 1, "2024-02-28T10:00:00"),
        make_txn("ADD_BALANCE", 1, "2024-03-01T10:00:00"),
        make_txn("ADD_BALANCE", 1, "2023-03-01T10:00:00"),
    ]
    assert len(filter_by_period(ledger, Period(2024, 3))) == 1
    assert len(filter_by_period(ledger, Period(2024))) == 2
    assert len(filter_by_period(ledger, Period())) == 3


def test_monthly_report(make_txn):
    ledger = [
        make_txn("SAVE_TO_SAVINGS", 100, "2024-02-10T00:00:00"),
        make_txn("SET_BALANCE", 1000, "2024-03-01T00:00:00"),
        make_txn("ADD_BALANCE", 400, "2024-03-02T00:00:00"),
        make_txn("ADD_SPENDING", 62, "2024-03-03T00:00:00"),
        make_txn("ADD_SPENDING", 31, "2024-03-04T00:00:00"),
        make_txn("SAVE_TO_SAVINGS", 200, "2024-03-05T00:00:00"),
        make_txn("TAKE_FROM_SAVINGS", 50, "2024-03-06T00:00:00"),
        make_txn("ADD_SPENDING", 999, "2024-04-01T00:00:00"),
    ]
    report = build_report(ledger, Period(2024, 3))

    assert report.total_income == Decimal("400")
    assert report.total_spending == Decimal("93")
    assert report.net_savings == Decimal("150")
    assert report.previous_net_savings == Decimal("100")
    assert report.savings_growth_percent == Decimal("50")
    assert report.average_daily_spending == Decimal("3.00")
    assert report.total_transactions == 6
    assert report.counts["ADD_SPENDING"] == 2
    assert report.counts["SET_BALANCE"] == 1
    assert report.spending_share_percent.quantize(Decimal("0.1")) == Decimal("33.3")

    rendered = report.to_dict()
    assert rendered["savings_growth_percent"] == "50.0"
    assert rendered["period"] == {"year": 2024, "month": 3}


def test_report_growth_from_empty_previous_period(make_txn):
    ledger = [make_txn("SAVE_TO_SAVINGS", 50, "2024-06-01T00:00:00")]
    assert build_report(ledger, Period(2024)).savings_growth_percent == 100
    assert build_report([], Period(2024)).savings_growth_percent == 0


def test_all_time_report_compares_with_last_year(make_txn):
    ledger = [
        make_txn("SAVE_TO_SAVINGS", 80, "2024-06-01T00:00:00"),
        make_txn("SAVE_TO_SAVINGS", 40, "2023-06-01T00:00:00"),
        make_txn("ADD_SPENDING", 365, "2022-06-01T00:00:00"),
    ]
    report = build_report(ledger, today=date(2025, 1, 15))
    assert report.net_savings == Decimal("120")
    assert report.previous_net_savings == Decimal("80")
    assert report.average_daily_spending == Decimal("1.00")


def test_empty_report_has_zero_shares():
    report = build_report([], Period(2024, 1))
    assert report.total_transactions == 0
    assert report.spending_share_percent == 0
    assert report.income_share_percent == 0


def test_search_matches_title_and_description(make_txn):
    ledger = [
        make_txn("ADD_SPENDING", 10, "2024-05-01T00:00:00", title="Groceries"),
        make_txn("ADD_SPENDING", 10, "2024-05-02T00:00:00", title="Taxi", description="Airport GROCERY run"),
        make_txn("ADD_BALANCE", 10, "2024-05-03T00:00:00", title="Salary"),
    ]
    assert [t.title for t in search_transactions(ledger, query="grocer")] == ["Groceries", "Taxi"]
    assert search_transactions(ledger, query="  ") == ledger


def test_search_date_scopes(make_txn):
    ledger = [
        make_txn("ADD_BALANCE", 1, "2024-05-01T08:00:00"),
        make_txn("ADD_BALANCE", 1, "2024-05-20T08:00:00"),
        make_txn("ADD_BALANCE", 1, "2024-07-01T08:00:00"),
        make_txn("ADD_BALANCE", 1, "2023-05-01T08:00:00"),
    ]
    assert len(search_transactions(ledger, scope="day", on="2024-05-01")) == 1
    assert len(search_transactions(ledger, scope="month", on="2024-05-01")) == 2
    assert len(search_transactions(ledger, scope="year", on="2024-01-01")) == 3
    assert len(search_transactions(ledger, scope="day")) == 4
    with pytest.raises(ValidationError):
        search_transactions(ledger, scope="week", on="2024-05-01")


def test_savings_history_pages_newest_first(make_txn):
    ledger = [make_txn("SAVE_TO_SAVINGS", n, f"2024-01-{n:02d}T00:00:00") for n in range(1, 8)]
    ledger.append(make_txn("ADD_SPENDING", 5, "2024-01-09T00:00:00"))

    first = savings_history(ledger)
    assert [t.amount for t in first.items] == [Decimal(n) for n in (7, 6, 5, 4, 3)]
    assert first.total == 7
    assert first.has_more

    second = savings_history(ledger, page=2)
    assert len(second.items) == 7
    assert not second.has_more

    one_day = savings_history(ledger, on="2024-01-03")
    assert [t.amount for t in one_day.items] == [Decimal("3")]
