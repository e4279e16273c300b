"""Report builders composed from the aggregator and the schedule data.

Every builder is read-only and runs its own aggregation pass, so reports can
be built concurrently against the same store. Amounts are signed integer
cents: income positive, expense negative, and ``net`` is their sum.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from propledger.database.base import Database
from propledger.domain.aggregator import AggregationBasis, AggregationResult, LedgerAggregator
from propledger.domain.entities import Category, CategoryKind, CategoryTotalRow, PropertyStatus
from propledger.domain.proration import divide_cents
from propledger.domain.recurring import posting_is_live
from propledger.domain.signs import SignPolicy, expected_sign
from propledger.utils.periods import DateRange, YearMonth

RENTAL_NAME_TOKENS = ("rent", "rental", "lease")
NON_RENTAL_NAME_TOKENS = ("late fee", "application", "deposit", "reimbursement", "utility", "hoa", "laundry")


def is_rental_income_category(category: Category) -> bool:
    """Income category whose name reads as rent (not fees, deposits or pass-throughs)."""
    if category.kind != CategoryKind.INCOME:
        return False
    name = category.name.lower()
    if not any(token in name for token in RENTAL_NAME_TOKENS):
        return False
    return not any(token in name for token in NON_RENTAL_NAME_TOKENS)


@dataclass(frozen=True)
class KindTotals:
    """Income, expense and transfer totals; ``net`` is their sum."""

    income_cents: int = 0
    expense_cents: int = 0
    transfer_cents: int = 0

    @property
    def net_cents(self) -> int:
        return self.income_cents + self.expense_cents + self.transfer_cents

    @classmethod
    def from_result(cls, result: AggregationResult) -> "KindTotals":
        return cls(result.income_cents, result.expense_cents, result.transfer_cents)

    def __add__(self, other: "KindTotals") -> "KindTotals":
        return KindTotals(
            self.income_cents + other.income_cents,
            self.expense_cents + other.expense_cents,
            self.transfer_cents + other.transfer_cents,
        )

    def __sub__(self, other: "KindTotals") -> "KindTotals":
        return KindTotals(
            self.income_cents - other.income_cents,
            self.expense_cents - other.expense_cents,
            self.transfer_cents - other.transfer_cents,
        )


@dataclass(frozen=True)
class MonthRow:
    month: YearMonth
    totals: KindTotals


@dataclass(frozen=True)
class ProfitLossByMonthReport:
    date_range: DateRange
    property_id: Optional[int]
    rows: tuple[MonthRow, ...]
    totals: KindTotals
    sign_corrections: int


@dataclass(frozen=True)
class PropertyRow:
    property_id: int
    name: str
    status: PropertyStatus
    totals: KindTotals


@dataclass(frozen=True)
class ProfitLossByPropertyReport:
    date_range: DateRange
    rows: tuple[PropertyRow, ...]
    totals: KindTotals
    sign_corrections: int


@dataclass(frozen=True)
class CategoryReport:
    """Hierarchical rows for one report bucket (expense or income)."""

    date_range: DateRange
    property_id: Optional[int]
    kind: CategoryKind
    rows: tuple[CategoryTotalRow, ...]
    total_cents: int
    sign_corrections: int


@dataclass(frozen=True)
class PropertyExpenseRow:
    property_id: int
    name: str
    status: PropertyStatus
    transactional_cents: int
    annual_cents: int

    @property
    def total_cents(self) -> int:
        return self.transactional_cents + self.annual_cents


@dataclass(frozen=True)
class ExpensesByPropertyReport:
    date_range: DateRange
    rows: tuple[PropertyExpenseRow, ...]
    total_cents: int
    sign_corrections: int


@dataclass(frozen=True)
class PropertyIncomeRow:
    property_id: int
    name: str
    transactional_cents: int
    annual_cents: int

    @property
    def total_cents(self) -> int:
        return self.transactional_cents + self.annual_cents


@dataclass(frozen=True)
class RentalIncomeReport:
    """Income per property; ``include_other_income`` widens it past rent categories."""

    date_range: DateRange
    include_other_income: bool
    rows: tuple[PropertyIncomeRow, ...]
    sign_corrections: int

    @property
    def transactional_cents(self) -> int:
        return sum(r.transactional_cents for r in self.rows)

    @property
    def annual_cents(self) -> int:
        return sum(r.annual_cents for r in self.rows)

    @property
    def total_cents(self) -> int:
        return self.transactional_cents + self.annual_cents


@dataclass(frozen=True)
class YearTrendRow:
    year: int
    income_cents: int
    expense_cents: int

    @property
    def net_cents(self) -> int:
        return self.income_cents + self.expense_cents

    @property
    def income_above_cents(self) -> int:
        """Part of income left after covering expenses."""
        return max(self.net_cents, 0)

    @property
    def expense_overage_cents(self) -> int:
        """Part of expenses income did not cover."""
        return max(-self.net_cents, 0)


@dataclass(frozen=True)
class IncomeVsExpensesReport:
    property_id: Optional[int]
    rows: tuple[YearTrendRow, ...]
    sign_corrections: int


@dataclass(frozen=True)
class YearSummary:
    year: int
    totals: KindTotals
    rows: tuple[CategoryTotalRow, ...]


@dataclass(frozen=True)
class AnnualSummaryReport:
    start_year: int
    end_year: int
    property_id: Optional[int]
    years: tuple[YearSummary, ...]
    totals: KindTotals
    sign_corrections: int


@dataclass(frozen=True)
class LeaderboardRow:
    property_id: int
    name: str
    status: PropertyStatus
    purchase_price_cents: Optional[int]
    transactional_net_cents: int
    annual_net_cents: int
    avg_monthly_cash_flow_cents: int
    yield_on_cost_pct: Optional[Decimal]

    @property
    def net_cash_flow_cents(self) -> int:
        return self.transactional_net_cents + self.annual_net_cents


@dataclass(frozen=True)
class LeaderboardReport:
    date_range: DateRange
    month_count: int
    rows: tuple[LeaderboardRow, ...]
    sign_corrections: int


@dataclass(frozen=True)
class CashAccrualCategoryRow:
    category_id: int
    name: str
    kind: CategoryKind
    cash_cents: int
    accrual_cents: int

    @property
    def delta_cents(self) -> int:
        return self.accrual_cents - self.cash_cents


@dataclass(frozen=True)
class CashVsAccrualReport:
    """Cash and accrual views of the same range.

    ``accrual_mode`` is "real" when at least one selected transaction carries
    a statement month, and "fallback" when accrual equals cash by construction.
    """

    date_range: DateRange
    property_id: Optional[int]
    accrual_mode: str
    cash: KindTotals
    accrual: KindTotals
    rows: tuple[CashAccrualCategoryRow, ...]
    sign_corrections: int

    @property
    def delta(self) -> KindTotals:
        return self.accrual - self.cash


@dataclass(frozen=True)
class RecurringOverviewRow:
    definition_id: int
    property_id: int
    property_name: str
    category_id: int
    category_name: str
    memo: Optional[str]
    is_active: bool
    monthly_amount_cents: int
    applicable_months: tuple[YearMonth, ...]
    posted_total_cents: int
    missing_months: tuple[YearMonth, ...]

    @property
    def expected_total_cents(self) -> int:
        return self.monthly_amount_cents * len(self.applicable_months)

    @property
    def variance_cents(self) -> int:
        return self.posted_total_cents - self.expected_total_cents


@dataclass(frozen=True)
class RecurringOverviewReport:
    date_range: DateRange
    rows: tuple[RecurringOverviewRow, ...]

    @property
    def expected_total_cents(self) -> int:
        return sum(r.expected_total_cents for r in self.rows)

    @property
    def posted_total_cents(self) -> int:
        return sum(r.posted_total_cents for r in self.rows)

    @property
    def variance_cents(self) -> int:
        return self.posted_total_cents - self.expected_total_cents


class ReportService:
    """Builds the named reports."""

    def __init__(self, db: Database, sign_policy: Optional[SignPolicy] = None):
        """Initialize report service.

        Args:
            db: Database instance
            sign_policy: Sign policy handed to the aggregator
        """
        self.db = db
        self.aggregator = LedgerAggregator(db, sign_policy)

    def profit_loss_by_month(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        include_transfers: bool = False,
        include_annual: bool = True,
    ) -> ProfitLossByMonthReport:
        """Income, expense and net for each calendar month touched by the range."""
        monthly = self.aggregator.aggregate_by_month(
            date_range,
            property_id=property_id,
            include_transfers=include_transfers,
            include_annual=include_annual,
        )
        rows = tuple(MonthRow(month, KindTotals.from_result(result)) for month, result in monthly)
        totals = sum((row.totals for row in rows), KindTotals())
        return ProfitLossByMonthReport(
            date_range=date_range,
            property_id=property_id,
            rows=rows,
            totals=totals,
            sign_corrections=sum(result.sign_corrections for _, result in monthly),
        )

    def profit_loss_by_property(
        self,
        date_range: DateRange,
        include_transfers: bool = False,
        include_annual: bool = True,
    ) -> ProfitLossByPropertyReport:
        """Income, expense and net for every property, ordered by name."""
        result = self.aggregator.aggregate(
            date_range, include_transfers=include_transfers, include_annual=include_annual
        )
        rows = tuple(
            PropertyRow(
                property_id=prop.id,
                name=prop.name,
                status=prop.status,
                totals=KindTotals(
                    result.property_kind_total(prop.id, CategoryKind.INCOME),
                    result.property_kind_total(prop.id, CategoryKind.EXPENSE),
                    result.property_kind_total(prop.id, CategoryKind.TRANSFER),
                ),
            )
            for prop in self.db.list_properties()
        )
        return ProfitLossByPropertyReport(
            date_range=date_range,
            rows=rows,
            totals=KindTotals.from_result(result),
            sign_corrections=result.sign_corrections,
        )

    def _category_report(
        self,
        kind: CategoryKind,
        date_range: DateRange,
        property_id: Optional[int],
        include_transfers: bool,
    ) -> CategoryReport:
        result = self.aggregator.aggregate(
            date_range,
            property_id=property_id,
            kinds=[kind],
            include_transfers=include_transfers,
        )
        return CategoryReport(
            date_range=date_range,
            property_id=property_id,
            kind=kind,
            rows=tuple(result.hierarchy()),
            total_cents=result.total,
            sign_corrections=result.sign_corrections,
        )

    def expenses_by_category(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        include_transfers: bool = False,
    ) -> CategoryReport:
        """Expense categories rolled up through the tree."""
        return self._category_report(CategoryKind.EXPENSE, date_range, property_id, include_transfers)

    def income_by_category(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        include_transfers: bool = False,
    ) -> CategoryReport:
        """Income categories rolled up through the tree."""
        return self._category_report(CategoryKind.INCOME, date_range, property_id, include_transfers)

    def expenses_by_property(
        self,
        date_range: DateRange,
        include_transfers: bool = False,
        status: Optional[PropertyStatus] = None,
    ) -> ExpensesByPropertyReport:
        """Transactional and annual expense per property, largest expense first."""
        result = self.aggregator.aggregate(
            date_range, kinds=[CategoryKind.EXPENSE], include_transfers=include_transfers
        )
        rows = [
            PropertyExpenseRow(
                property_id=prop.id,
                name=prop.name,
                status=prop.status,
                transactional_cents=result.transactional_by_property.get(prop.id, 0),
                annual_cents=result.annual_by_property.get(prop.id, 0),
            )
            for prop in self.db.list_properties(status=status)
        ]
        rows.sort(key=lambda r: (r.total_cents, r.name))
        return ExpensesByPropertyReport(
            date_range=date_range,
            rows=tuple(rows),
            total_cents=sum(r.total_cents for r in rows),
            sign_corrections=result.sign_corrections,
        )

    def rental_income_by_property(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        include_transfers: bool = False,
        include_other_income: bool = False,
    ) -> RentalIncomeReport:
        """Rental income per property, highest first (ties by name).

        Only income categories named like rent count unless
        ``include_other_income`` is set; transfer categories count only when
        both flags are set. Properties without matching activity are omitted.
        """
        kinds = [CategoryKind.INCOME]
        full = self.aggregator.aggregate(
            date_range, property_id=property_id, kinds=kinds, include_transfers=include_transfers
        )
        itemized = self.aggregator.aggregate(
            date_range,
            property_id=property_id,
            kinds=kinds,
            include_transfers=include_transfers,
            include_annual=False,
        )
        selected = {
            cid
            for cid, category in full.categories.items()
            if include_other_income or is_rental_income_category(category)
        }

        rows: list[PropertyIncomeRow] = []
        for prop in self.db.list_properties():
            amounts = full.by_property_category.get(prop.id, {})
            if not any(cid in selected for cid in amounts):
                continue
            total = sum(a for cid, a in amounts.items() if cid in selected)
            transactional = sum(
                a for cid, a in itemized.by_property_category.get(prop.id, {}).items() if cid in selected
            )
            rows.append(
                PropertyIncomeRow(
                    property_id=prop.id,
                    name=prop.name,
                    transactional_cents=transactional,
                    annual_cents=total - transactional,
                )
            )

        rows.sort(key=lambda r: (-r.total_cents, r.name))
        return RentalIncomeReport(
            date_range=date_range,
            include_other_income=include_other_income,
            rows=tuple(rows),
            sign_corrections=full.sign_corrections,
        )

    def income_vs_expenses_by_year(self, property_id: Optional[int] = None) -> IncomeVsExpensesReport:
        """Income, expense and net for every year from the first with activity to the last."""
        category_ids = [c.id for c in self.db.list_categories(kinds=[CategoryKind.INCOME, CategoryKind.EXPENSE])]
        if not category_ids:
            return IncomeVsExpensesReport(property_id=property_id, rows=(), sign_corrections=0)

        years = {
            txn.date.year
            for txn in self.db.list_transactions(property_id=property_id, category_ids=category_ids)
        }
        years.update(
            row.year for row in self.db.list_annual_amounts(property_id=property_id, category_ids=category_ids)
        )
        if not years:
            return IncomeVsExpensesReport(property_id=property_id, rows=(), sign_corrections=0)

        summary = self.annual_summary(min(years), max(years), property_id=property_id)
        return IncomeVsExpensesReport(
            property_id=property_id,
            rows=tuple(YearTrendRow(y.year, y.totals.income_cents, y.totals.expense_cents) for y in summary.years),
            sign_corrections=summary.sign_corrections,
        )

    def annual_summary(
        self,
        start_year: int,
        end_year: int,
        property_id: Optional[int] = None,
        include_transfers: bool = False,
    ) -> AnnualSummaryReport:
        """Per-year totals and category rows; reversed years are swapped."""
        if start_year > end_year:
            start_year, end_year = end_year, start_year

        years: list[YearSummary] = []
        corrections = 0
        for year in range(start_year, end_year + 1):
            result = self.aggregator.aggregate(
                DateRange.for_year(year), property_id=property_id, include_transfers=include_transfers
            )
            corrections += result.sign_corrections
            years.append(YearSummary(year=year, totals=KindTotals.from_result(result), rows=tuple(result.hierarchy())))

        return AnnualSummaryReport(
            start_year=start_year,
            end_year=end_year,
            property_id=property_id,
            years=tuple(years),
            totals=sum((y.totals for y in years), KindTotals()),
            sign_corrections=corrections,
        )

    def portfolio_leaderboard(
        self,
        date_range: DateRange,
        status: Optional[PropertyStatus] = None,
        include_transfers: bool = False,
    ) -> LeaderboardReport:
        """Properties ranked by net cash flow, highest first (ties by name)."""
        result = self.aggregator.aggregate(date_range, include_transfers=include_transfers)
        month_count = date_range.month_count()

        rows: list[LeaderboardRow] = []
        for prop in self.db.list_properties(status=status):
            transactional = result.transactional_by_property.get(prop.id, 0)
            annual = result.annual_by_property.get(prop.id, 0)
            net = transactional + annual
            yield_on_cost = None
            if prop.purchase_price_cents:
                yield_on_cost = Decimal(net) * 100 / Decimal(prop.purchase_price_cents)
            rows.append(
                LeaderboardRow(
                    property_id=prop.id,
                    name=prop.name,
                    status=prop.status,
                    purchase_price_cents=prop.purchase_price_cents,
                    transactional_net_cents=transactional,
                    annual_net_cents=annual,
                    avg_monthly_cash_flow_cents=divide_cents(net, month_count),
                    yield_on_cost_pct=yield_on_cost,
                )
            )

        rows.sort(key=lambda r: (-r.net_cash_flow_cents, r.name))
        return LeaderboardReport(
            date_range=date_range,
            month_count=month_count,
            rows=tuple(rows),
            sign_corrections=result.sign_corrections,
        )

    def cash_vs_accrual(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        include_transfers: bool = False,
    ) -> CashVsAccrualReport:
        """Compare the cash view (transaction date) with the accrual view (statement month)."""
        cash = self.aggregator.aggregate(
            date_range, property_id=property_id, include_transfers=include_transfers, basis=AggregationBasis.CASH
        )
        accrual = self.aggregator.aggregate(
            date_range, property_id=property_id, include_transfers=include_transfers, basis=AggregationBasis.ACCRUAL
        )

        rows = [
            CashAccrualCategoryRow(
                category_id=category.id,
                name=category.name,
                kind=category.kind,
                cash_cents=cash.by_category.get(category.id, 0),
                accrual_cents=accrual.by_category.get(category.id, 0),
            )
            for category in cash.categories.values()
        ]
        rows = [r for r in rows if r.cash_cents or r.accrual_cents]
        rows.sort(key=lambda r: (r.name.lower(), r.category_id))

        return CashVsAccrualReport(
            date_range=date_range,
            property_id=property_id,
            accrual_mode="real" if accrual.statement_month_count else "fallback",
            cash=KindTotals.from_result(cash),
            accrual=KindTotals.from_result(accrual),
            rows=tuple(rows),
            sign_corrections=cash.sign_corrections + accrual.sign_corrections,
        )

    def recurring_overview(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        include_inactive: bool = False,
    ) -> RecurringOverviewReport:
        """Expected versus posted amounts of recurring expenses in the range.

        Only postings whose ledger transaction is live count as posted.
        """
        months = date_range.months()
        categories = {c.id: c for c in self.db.list_categories()}
        properties = {p.id: p for p in self.db.list_properties()}
        definitions = [
            d
            for d in self.db.list_recurring_definitions(property_id=property_id, active_only=not include_inactive)
            if d.category_id in categories and categories[d.category_id].kind == CategoryKind.EXPENSE
        ]

        postings = self.db.list_recurring_postings([d.id for d in definitions], months=months)
        transactions = self.db.get_transactions(p.ledger_transaction_id for p in postings)
        live_by_definition: dict[int, dict[YearMonth, int]] = {}
        for posting in postings:
            if posting_is_live(posting, transactions):
                amount = transactions[posting.ledger_transaction_id].amount_cents
                live_by_definition.setdefault(posting.recurring_definition_id, {})[posting.month] = amount

        rows: list[RecurringOverviewRow] = []
        for definition in definitions:
            applicable = tuple(m for m in months if definition.applies_to(m))
            if not applicable:
                continue
            posted = live_by_definition.get(definition.id, {})
            prop = properties.get(definition.property_id)
            rows.append(
                RecurringOverviewRow(
                    definition_id=definition.id,
                    property_id=definition.property_id,
                    property_name=prop.name if prop is not None else f"#{definition.property_id}",
                    category_id=definition.category_id,
                    category_name=categories[definition.category_id].name,
                    memo=definition.memo,
                    is_active=definition.is_active,
                    monthly_amount_cents=expected_sign(CategoryKind.EXPENSE, definition.amount_cents),
                    applicable_months=applicable,
                    posted_total_cents=sum(posted.values()),
                    missing_months=tuple(m for m in applicable if m not in posted),
                )
            )

        return RecurringOverviewReport(date_range=date_range, rows=tuple(rows))
