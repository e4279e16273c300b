"""Tests for report builders."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from propledger.domain.entities import Category, CategoryKind, PropertyStatus
from propledger.domain.reports import KindTotals, is_rental_income_category
from propledger.utils.periods import DateRange, YearMonth

JAN_FEB_2023 = DateRange(date(2023, 1, 1), date(2023, 2, 28))


@pytest.fixture
def portfolio(property_service, sample_property, sample_categories, transaction_service):
    """Two properties with activity in early 2023.

    Maple St: rent 1,500.00 and electric -100.00 in January, property tax
    -3,650.00 for 2023 (-10.00 a day). Oak Ave (sold): rent 900.00 and
    water -50.00 in February.
    """
    cats = sample_categories
    oak_id = property_service.create_property(name="Oak Ave", status=PropertyStatus.SOLD)
    maple_id = sample_property.id
    add = transaction_service.create_transaction
    add(maple_id, cats["Income > Rent"], date(2023, 1, 5), 150000)
    add(maple_id, cats["Expenses > Utilities > Electric"], date(2023, 1, 10), -10000)
    add(oak_id, cats["Income > Rent"], date(2023, 2, 3), 90000)
    add(oak_id, cats["Expenses > Utilities > Water"], date(2023, 2, 4), -5000)
    add(maple_id, cats["Owner Transfers"], date(2023, 2, 10), -7000)
    transaction_service.set_annual_amount(maple_id, 2023, cats["Expenses > Property Tax"], -365000)
    return {"maple": maple_id, "oak": oak_id}


def test_kind_totals_arithmetic():
    a = KindTotals(100, -40, 5)
    b = KindTotals(10, -10, 0)
    assert a.net_cents == 65
    assert a + b == KindTotals(110, -50, 5)
    assert a - b == KindTotals(90, -30, 5)


class TestProfitLoss:
    """Profit and loss reports."""

    def test_by_month(self, report_service, portfolio):
        report = report_service.profit_loss_by_month(JAN_FEB_2023)

        assert [row.month for row in report.rows] == [YearMonth(2023, 1), YearMonth(2023, 2)]
        jan, feb = report.rows
        assert jan.totals == KindTotals(150000, -41000, 0)
        assert feb.totals == KindTotals(90000, -33000, 0)
        assert report.totals == KindTotals(240000, -74000, 0)
        assert report.totals.net_cents == 166000

    def test_by_month_with_transfers(self, report_service, portfolio):
        report = report_service.profit_loss_by_month(JAN_FEB_2023, include_transfers=True)
        assert report.rows[1].totals.transfer_cents == -7000
        assert report.totals.net_cents == 159000

    def test_by_month_for_one_property(self, report_service, portfolio):
        report = report_service.profit_loss_by_month(JAN_FEB_2023, property_id=portfolio["oak"])
        assert report.totals == KindTotals(90000, -5000, 0)

    def test_by_property(self, report_service, portfolio):
        report = report_service.profit_loss_by_property(JAN_FEB_2023)

        assert [row.name for row in report.rows] == ["Maple St", "Oak Ave"]
        maple, oak = report.rows
        # 59 days of property tax
        assert maple.totals == KindTotals(150000, -69000, 0)
        assert oak.totals == KindTotals(90000, -5000, 0)
        assert report.totals == KindTotals(240000, -74000, 0)


class TestCategoryReports:
    """Expense and income category reports."""

    def test_expenses_by_category(self, report_service, portfolio):
        report = report_service.expenses_by_category(JAN_FEB_2023)

        assert [(r.name, r.depth, r.amount_cents) for r in report.rows] == [
            ("Expenses", 0, -74000),
            ("Property Tax", 1, -59000),
            ("Utilities", 1, -15000),
            ("Electric", 2, -10000),
            ("Water", 2, -5000),
        ]
        assert report.total_cents == -74000

    def test_income_by_category(self, report_service, portfolio):
        report = report_service.income_by_category(JAN_FEB_2023, property_id=portfolio["maple"])
        assert [(r.name, r.amount_cents) for r in report.rows] == [("Income", 150000), ("Rent", 150000)]
        assert report.total_cents == 150000

    def test_empty_range(self, report_service, portfolio):
        report = report_service.expenses_by_category(DateRange.for_year(2021))
        assert report.rows == ()
        assert report.total_cents == 0


class TestExpensesByProperty:
    """Expenses split by property."""

    def test_largest_expense_first(self, report_service, portfolio):
        report = report_service.expenses_by_property(JAN_FEB_2023)

        assert [row.name for row in report.rows] == ["Maple St", "Oak Ave"]
        maple = report.rows[0]
        assert maple.transactional_cents == -10000
        assert maple.annual_cents == -59000
        assert maple.total_cents == -69000
        assert report.total_cents == -74000

    def test_status_filter(self, report_service, portfolio):
        report = report_service.expenses_by_property(JAN_FEB_2023, status=PropertyStatus.SOLD)
        assert [row.name for row in report.rows] == ["Oak Ave"]


class TestRentalIncome:
    """Rental income per property."""

    @pytest.fixture
    def with_fees(self, portfolio, category_service, transaction_service, sample_categories):
        fees_id = category_service.create_category("Late Fees", kind=CategoryKind.INCOME, parent_path="Income")
        transaction_service.create_transaction(portfolio["oak"], fees_id, date(2023, 2, 20), 2500)
        transaction_service.set_annual_amount(portfolio["maple"], 2023, sample_categories["Income > Rent"], 365000)
        return portfolio

    def test_rent_only_by_default(self, report_service, with_fees):
        report = report_service.rental_income_by_property(JAN_FEB_2023)

        assert [row.name for row in report.rows] == ["Maple St", "Oak Ave"]
        maple, oak = report.rows
        # 59 days of a 1,000.00 a day annual amount
        assert (maple.transactional_cents, maple.annual_cents, maple.total_cents) == (150000, 59000, 209000)
        assert oak.total_cents == 90000
        assert report.total_cents == 299000

    def test_other_income_and_transfers(self, report_service, with_fees):
        report = report_service.rental_income_by_property(JAN_FEB_2023, include_other_income=True)
        assert {row.name: row.total_cents for row in report.rows} == {"Maple St": 209000, "Oak Ave": 92500}

        report = report_service.rental_income_by_property(
            JAN_FEB_2023, include_other_income=True, include_transfers=True
        )
        assert {row.name: row.total_cents for row in report.rows} == {"Maple St": 202000, "Oak Ave": 92500}

        # Transfers alone never read as rent
        report = report_service.rental_income_by_property(JAN_FEB_2023, include_transfers=True)
        assert report.total_cents == 299000

    def test_property_filter_and_quiet_properties(self, report_service, property_service, with_fees):
        property_service.create_property("Pine Rd")

        report = report_service.rental_income_by_property(JAN_FEB_2023)
        assert "Pine Rd" not in [row.name for row in report.rows]

        report = report_service.rental_income_by_property(JAN_FEB_2023, property_id=with_fees["oak"])
        assert [row.name for row in report.rows] == ["Oak Ave"]

    @pytest.mark.parametrize(
        "name, kind, expected",
        [
            ("Rent", CategoryKind.INCOME, True),
            ("Lease Income", CategoryKind.INCOME, True),
            ("Rental Utility Reimbursement", CategoryKind.INCOME, False),
            ("Late Fees", CategoryKind.INCOME, False),
            ("Laundry", CategoryKind.INCOME, False),
            ("Rent", CategoryKind.EXPENSE, False),
        ],
    )
    def test_rental_category_names(self, name, kind, expected):
        category = Category(id=1, name=name, kind=kind, parent_id=None, active=True, created_at=datetime(2023, 1, 1))
        assert is_rental_income_category(category) is expected


class TestIncomeVsExpensesByYear:
    """Yearly income and expense trend."""

    def test_years_span_first_to_last_activity(self, report_service, transaction_service, sample_categories, portfolio):
        transaction_service.create_transaction(portfolio["maple"], sample_categories["Income > Rent"], date(2021, 6, 1), 1000)

        report = report_service.income_vs_expenses_by_year()

        assert [row.year for row in report.rows] == [2021, 2022, 2023]
        first, gap, last = report.rows
        assert (first.income_cents, first.expense_cents, first.income_above_cents) == (1000, 0, 1000)
        assert gap.net_cents == 0
        assert last.income_cents == 240000
        assert last.expense_cents == -380000
        assert last.net_cents == -140000
        assert last.expense_overage_cents == 140000
        assert last.income_above_cents == 0

    def test_property_filter(self, report_service, portfolio):
        [row] = report_service.income_vs_expenses_by_year(property_id=portfolio["maple"]).rows
        assert (row.year, row.income_cents, row.expense_cents) == (2023, 150000, -375000)

    def test_transfers_do_not_add_years(self, report_service, transaction_service, sample_property, sample_categories):
        transaction_service.create_transaction(
            sample_property.id, sample_categories["Owner Transfers"], date(2019, 3, 1), 5000
        )
        assert report_service.income_vs_expenses_by_year().rows == ()

    def test_empty_store(self, report_service):
        assert report_service.income_vs_expenses_by_year().rows == ()


class TestAnnualSummary:
    """Per-year summary."""

    def test_reversed_years_are_swapped(self, report_service, portfolio):
        report = report_service.annual_summary(2023, 2022)

        assert (report.start_year, report.end_year) == (2022, 2023)
        assert [y.year for y in report.years] == [2022, 2023]
        assert report.years[0].totals == KindTotals()
        assert report.years[1].totals == KindTotals(240000, -380000, 0)
        assert report.totals == report.years[1].totals

    def test_category_rows_per_year(self, report_service, portfolio):
        report = report_service.annual_summary(2023, 2023)
        names = [r.name for r in report.years[0].rows]
        assert names[0] == "Expenses"
        assert "Rent" in names


class TestLeaderboard:
    """Portfolio leaderboard."""

    def test_ranked_by_net_cash_flow(self, report_service, portfolio):
        report = report_service.portfolio_leaderboard(DateRange.for_year(2023))

        assert report.month_count == 12
        assert [row.name for row in report.rows] == ["Oak Ave", "Maple St"]
        oak, maple = report.rows
        assert oak.net_cash_flow_cents == 85000
        assert oak.avg_monthly_cash_flow_cents == 7083
        assert oak.yield_on_cost_pct is None

        assert maple.transactional_net_cents == 140000
        assert maple.annual_net_cents == -365000
        assert maple.net_cash_flow_cents == -225000
        assert maple.avg_monthly_cash_flow_cents == -18750
        # -225000 / 25000000 * 100
        assert maple.yield_on_cost_pct == Decimal("-0.9")

    def test_status_filter(self, report_service, portfolio):
        report = report_service.portfolio_leaderboard(DateRange.for_year(2023), status=PropertyStatus.ACTIVE)
        assert [row.name for row in report.rows] == ["Maple St"]

    def test_ties_break_by_name(self, report_service, property_service):
        property_service.create_property(name="Birch")
        property_service.create_property(name="Aspen")
        report = report_service.portfolio_leaderboard(DateRange.for_year(2023))
        assert [row.name for row in report.rows] == ["Aspen", "Birch"]


class TestCashVsAccrual:
    """Cash versus accrual comparison."""

    def test_statement_month_shifts_income(self, report_service, sample_property, sample_categories, transaction_service):
        rent = sample_categories["Income > Rent"]
        transaction_service.create_transaction(sample_property.id, rent, date(2023, 1, 5), 150000)
        transaction_service.create_transaction(
            sample_property.id, rent, date(2023, 2, 2), 150000, statement_month=YearMonth(2023, 1)
        )

        report = report_service.cash_vs_accrual(DateRange(date(2023, 1, 1), date(2023, 1, 31)))

        assert report.accrual_mode == "real"
        assert report.cash.income_cents == 150000
        assert report.accrual.income_cents == 300000
        assert report.delta == KindTotals(150000, 0, 0)
        [row] = report.rows
        assert (row.name, row.cash_cents, row.accrual_cents, row.delta_cents) == ("Rent", 150000, 300000, 150000)

    def test_fallback_mode_matches_cash(self, report_service, portfolio):
        report = report_service.cash_vs_accrual(JAN_FEB_2023)
        assert report.accrual_mode == "fallback"
        assert report.cash == report.accrual
        assert report.delta == KindTotals()
        assert [row.name for row in report.rows] == ["Electric", "Property Tax", "Rent", "Water"]


class TestRecurringOverview:
    """Expected versus posted recurring expenses."""

    def test_expected_posted_and_missing(
        self, report_service, recurring_service, posting_service, transaction_service, sample_property, sample_categories
    ):
        definition_id = recurring_service.create_definition(
            sample_property.id, sample_categories["Expenses > Insurance"], 50000, 1, "2023-01"
        )
        posting_service.post_for_month(sample_property.id, YearMonth(2023, 1))
        feb = posting_service.post_for_month(sample_property.id, YearMonth(2023, 2))
        transaction_service.delete_transaction(feb.created_transaction_ids[0])

        report = report_service.recurring_overview(DateRange(date(2023, 1, 1), date(2023, 3, 31)))

        [row] = report.rows
        assert row.definition_id == definition_id
        assert row.property_name == "Maple St"
        assert row.category_name == "Insurance"
        assert row.monthly_amount_cents == -50000
        assert row.applicable_months == (YearMonth(2023, 1), YearMonth(2023, 2), YearMonth(2023, 3))
        assert row.expected_total_cents == -150000
        assert row.posted_total_cents == -50000
        assert row.variance_cents == 100000
        assert row.missing_months == (YearMonth(2023, 2), YearMonth(2023, 3))
        assert report.variance_cents == 100000

    def test_restored_transaction_after_repost(
        self, report_service, recurring_service, posting_service, transaction_service, sample_property, sample_categories
    ):
        recurring_service.create_definition(
            sample_property.id, sample_categories["Expenses > Insurance"], 50000, 1, "2023-01", "2023-01"
        )
        jan = YearMonth(2023, 1)
        old_id = posting_service.post_for_month(sample_property.id, jan).created_transaction_ids[0]
        transaction_service.delete_transaction(old_id)
        new_id = posting_service.post_for_month(sample_property.id, jan).created_transaction_ids[0]
        transaction_service.restore_transaction(old_id)

        # Both ledger rows are live and both are summed
        expenses = report_service.expenses_by_category(jan.date_range())
        assert expenses.total_cents == -100000

        # The posting row only points at the replacement
        [row] = report_service.recurring_overview(jan.date_range()).rows
        assert row.posted_total_cents == -50000
        assert row.missing_months == ()

        [item] = recurring_service.scheduled_for_month(sample_property.id, jan)
        assert item.posting.ledger_transaction_id == new_id
        assert posting_service.post_for_month(sample_property.id, jan).posted_count == 0

    def test_window_limits_applicable_months(self, report_service, recurring_service, sample_property, sample_categories):
        recurring_service.create_definition(
            sample_property.id, sample_categories["Expenses > Insurance"], 50000, 1, "2023-03", "2023-04"
        )
        report = report_service.recurring_overview(DateRange.for_year(2023))
        assert report.rows[0].applicable_months == (YearMonth(2023, 3), YearMonth(2023, 4))

        assert report_service.recurring_overview(DateRange.for_year(2022)).rows == ()

    def test_income_and_inactive_definitions(self, report_service, recurring_service, sample_property, sample_categories):
        recurring_service.create_definition(sample_property.id, sample_categories["Income > Rent"], 150000, 1, "2023-01")
        inactive = recurring_service.create_definition(
            sample_property.id, sample_categories["Expenses > Insurance"], 50000, 1, "2023-01", is_active=False
        )
        r = DateRange.for_year(2023)

        assert report_service.recurring_overview(r).rows == ()
        report = report_service.recurring_overview(r, include_inactive=True)
        assert [row.definition_id for row in report.rows] == [inactive]
