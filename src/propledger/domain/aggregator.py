"""Ledger aggregator: itemized transactions plus prorated annual amounts."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from propledger.database.base import Database
from propledger.domain.category_tree import CategoryTreeIndex
from propledger.domain.entities import Category, CategoryKind, CategoryTotalRow
from propledger.domain.proration import prorate
from propledger.domain.signs import SignPolicy
from propledger.utils.periods import DateRange, YearMonth

logger = logging.getLogger(__name__)

DEFAULT_KINDS = (CategoryKind.INCOME, CategoryKind.EXPENSE)


class AggregationBasis(str, Enum):
    """Which date decides the period a transaction belongs to."""

    CASH = "cash"
    ACCRUAL = "accrual"


def allowed_kinds(
    kinds: Optional[Iterable[CategoryKind]] = None,
    include_transfers: bool = False,
) -> tuple[CategoryKind, ...]:
    """Resolve the kind filter, adding transfers when asked to."""
    resolved = {CategoryKind(k) for k in (kinds if kinds is not None else DEFAULT_KINDS)}
    if include_transfers:
        resolved.add(CategoryKind.TRANSFER)
    # Stable order for display and comparisons
    return tuple(k for k in CategoryKind if k in resolved)


@dataclass(frozen=True, eq=False)
class AggregationResult:
    """Totals of one aggregation pass, all in signed integer cents.

    ``by_category`` is flat and holds every allowed category, zeros included.
    ``hierarchy()`` rolls the same amounts up the category tree and drops
    zero-total subtrees.
    """

    date_range: DateRange
    property_id: Optional[int]
    basis: AggregationBasis
    kinds: tuple[CategoryKind, ...]
    categories: dict[int, Category]
    by_category: dict[int, int]
    transactional_by_category: dict[int, int]
    annual_by_category: dict[int, int]
    by_property: dict[int, int]
    by_property_category: dict[int, dict[int, int]]
    transactional_by_property: dict[int, int]
    annual_by_property: dict[int, int]
    totals_by_kind: dict[CategoryKind, int]
    transactional_by_kind: dict[CategoryKind, int]
    annual_by_kind: dict[CategoryKind, int]
    total: int
    transaction_count: int
    sign_corrections: int
    statement_month_count: int = 0
    by_property_kind: dict[int, dict[CategoryKind, int]] = field(default_factory=dict)

    def kind_total(self, kind: CategoryKind) -> int:
        return self.totals_by_kind.get(kind, 0)

    @property
    def income_cents(self) -> int:
        return self.kind_total(CategoryKind.INCOME)

    @property
    def expense_cents(self) -> int:
        return self.kind_total(CategoryKind.EXPENSE)

    @property
    def transfer_cents(self) -> int:
        return self.kind_total(CategoryKind.TRANSFER)

    def property_kind_total(self, property_id: int, kind: CategoryKind) -> int:
        return self.by_property_kind.get(property_id, {}).get(kind, 0)

    def tree(self) -> CategoryTreeIndex:
        return CategoryTreeIndex(self.categories.values())

    def hierarchy(self) -> list[CategoryTotalRow]:
        """Depth-first rolled-up rows, siblings by name, zero-total subtrees omitted."""
        return self.tree().rows(self.by_category)

    def rollup(self) -> dict[int, int]:
        """Rolled-up total for every allowed category."""
        return self.tree().rollup(self.by_category)


class LedgerAggregator:
    """Builds ``AggregationResult`` values from the repository.

    Each call is one pass: it reads categories, transactions and annual
    amounts, normalizes every amount through a fresh copy of the configured
    ``SignPolicy`` and keeps no state between calls.
    """

    def __init__(self, db: Database, sign_policy: Optional[SignPolicy] = None):
        """Initialize ledger aggregator.

        Args:
            db: Database instance
            sign_policy: Policy applied to every contributing amount
                (defaults to correcting mode)
        """
        self.db = db
        self.sign_policy = sign_policy or SignPolicy()

    def aggregate(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        kinds: Optional[Iterable[CategoryKind]] = None,
        include_transfers: bool = False,
        include_annual: bool = True,
        basis: AggregationBasis = AggregationBasis.CASH,
    ) -> AggregationResult:
        """Aggregate ledger activity over a date range.

        Args:
            date_range: Inclusive query range
            property_id: Optional property filter (None = all properties)
            kinds: Category kinds to include (default: income and expense)
            include_transfers: If True, transfer-kind categories are added
            include_annual: If False, annual amounts are left out
            basis: Cash (by transaction date) or accrual (by statement month)

        Returns:
            AggregationResult for the pass

        Raises:
            ValidationError: If the category tree has a cycle, or a sign is
                wrong under the strict policy
        """
        basis = AggregationBasis(basis)
        resolved_kinds = allowed_kinds(kinds, include_transfers)
        categories = {c.id: c for c in self.db.list_categories(kinds=resolved_kinds)}
        # Validates the parent links before anything is summed
        CategoryTreeIndex(categories.values())

        policy = self.sign_policy.fresh()
        category_ids = list(categories)

        transactional_by_category: dict[int, int] = {cid: 0 for cid in categories}
        annual_by_category: dict[int, int] = {cid: 0 for cid in categories}
        by_property_category: dict[int, dict[int, int]] = defaultdict(lambda: defaultdict(int))
        by_property_kind: dict[int, dict[CategoryKind, int]] = defaultdict(lambda: defaultdict(int))
        transactional_by_property: dict[int, int] = defaultdict(int)
        annual_by_property: dict[int, int] = defaultdict(int)
        transactional_by_kind: dict[CategoryKind, int] = {k: 0 for k in resolved_kinds}
        annual_by_kind: dict[CategoryKind, int] = {k: 0 for k in resolved_kinds}

        transactions = []
        if category_ids:
            if basis == AggregationBasis.ACCRUAL:
                transactions = self.db.list_accrual_transactions(
                    statement_months=date_range.months(),
                    start_date=date_range.start,
                    end_date=date_range.end,
                    property_id=property_id,
                    category_ids=category_ids,
                )
            else:
                transactions = self.db.list_transactions(
                    property_id=property_id,
                    start_date=date_range.start,
                    end_date=date_range.end,
                    category_ids=category_ids,
                )

        statement_month_count = 0
        for txn in transactions:
            category = categories.get(txn.category_id)
            if category is None or txn.is_deleted:
                continue
            if txn.statement_month is not None:
                statement_month_count += 1
            amount = policy.normalize(category.kind, txn.amount_cents, f"transaction {txn.id}")
            transactional_by_category[category.id] += amount
            transactional_by_kind[category.kind] += amount
            transactional_by_property[txn.property_id] += amount
            by_property_category[txn.property_id][category.id] += amount
            by_property_kind[txn.property_id][category.kind] += amount

        if include_annual and category_ids:
            annual_rows = self.db.list_annual_amounts(
                property_id=property_id,
                years=date_range.years(),
                category_ids=category_ids,
            )
            for row in annual_rows:
                category = categories.get(row.category_id)
                if category is None:
                    continue
                amount = policy.normalize(category.kind, row.amount_cents, f"annual amount {row.id}")
                share = prorate(amount, row.year, date_range)
                if share == 0:
                    continue
                annual_by_category[category.id] += share
                annual_by_kind[category.kind] += share
                annual_by_property[row.property_id] += share
                by_property_category[row.property_id][category.id] += share
                by_property_kind[row.property_id][category.kind] += share

        by_category = {
            cid: transactional_by_category[cid] + annual_by_category[cid] for cid in categories
        }
        totals_by_kind = {k: transactional_by_kind[k] + annual_by_kind[k] for k in resolved_kinds}
        property_ids = set(transactional_by_property) | set(annual_by_property)
        by_property = {
            pid: transactional_by_property.get(pid, 0) + annual_by_property.get(pid, 0) for pid in property_ids
        }

        if policy.corrections:
            logger.warning(
                "aggregation range=%s property=%s corrected %d amount sign(s)",
                date_range,
                property_id,
                policy.corrections,
            )

        return AggregationResult(
            date_range=date_range,
            property_id=property_id,
            basis=basis,
            kinds=resolved_kinds,
            categories=categories,
            by_category=by_category,
            transactional_by_category=transactional_by_category,
            annual_by_category=annual_by_category,
            by_property=by_property,
            by_property_category={pid: dict(v) for pid, v in by_property_category.items()},
            transactional_by_property=dict(transactional_by_property),
            annual_by_property=dict(annual_by_property),
            totals_by_kind=totals_by_kind,
            transactional_by_kind=transactional_by_kind,
            annual_by_kind=annual_by_kind,
            total=sum(by_category.values()),
            transaction_count=len(transactions),
            sign_corrections=policy.corrections,
            statement_month_count=statement_month_count,
            by_property_kind={pid: dict(v) for pid, v in by_property_kind.items()},
        )

    def aggregate_by_month(
        self,
        date_range: DateRange,
        property_id: Optional[int] = None,
        kinds: Optional[Iterable[CategoryKind]] = None,
        include_transfers: bool = False,
        include_annual: bool = True,
        basis: AggregationBasis = AggregationBasis.CASH,
    ) -> list[tuple[YearMonth, AggregationResult]]:
        """One aggregation per calendar month touched by the range.

        The first and last month are clipped to the range, so annual amounts
        are prorated by the days actually covered.
        """
        return [
            (
                month,
                self.aggregate(
                    piece,
                    property_id=property_id,
                    kinds=kinds,
                    include_transfers=include_transfers,
                    include_annual=include_annual,
                    basis=basis,
                ),
            )
            for month, piece in date_range.iter_month_slices()
        ]
