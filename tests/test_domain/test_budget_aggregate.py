"""
Tests for BudgetAggregate domain entity
"""
from decimal import Decimal

import pytest

from babybudget.domain.budget import (
    BudgetAggregate, SpendingItem, SPENDING_CATEGORIES, validate_category, to_amount,
)
from babybudget.domain.errors import BudgetValidationError, SpendingNotFoundError


def _sum_items(aggregate: BudgetAggregate) -> Decimal:
    return sum(
        (item.amount for _, items in aggregate.spending_by_category() for item in items),
        Decimal("0"),
    )


def test_new_aggregate_is_empty():
    agg = BudgetAggregate("u1")

    assert agg.period_budgets == []
    assert agg.total_spent == Decimal("0")
    assert [c for c, _ in agg.spending_by_category()] == list(SPENDING_CATEGORIES)
    assert all(items == [] for _, items in agg.spending_by_category())


class TestCategories:
    def test_declaration_order(self):
        assert SPENDING_CATEGORIES == (
            "diaper", "sanitary", "feeding", "skincare", "food",
            "toys", "bedding", "fashion", "other",
        )

    def test_valid_category_passes(self):
        assert validate_category("toys") == "toys"

    @pytest.mark.parametrize("category", ["", "Food", "groceries", "diaperBudget"])
    def test_invalid_category_rejected(self, category):
        with pytest.raises(BudgetValidationError):
            validate_category(category)


class TestAmounts:
    def test_int_and_float_converted(self):
        assert to_amount(30) == Decimal("30")
        assert to_amount(12.5) == Decimal("12.5")

    def test_negative_rejected(self):
        with pytest.raises(BudgetValidationError):
            to_amount(-1)

    def test_garbage_rejected(self):
        with pytest.raises(BudgetValidationError):
            to_amount("abc")


class TestSetPeriodBudget:
    def test_appends_new_period(self):
        agg = BudgetAggregate("u1")
        agg.set_period_budget(2024, 5, {"diaperBudget": 100, "foodBudget": 100})

        assert len(agg.period_budgets) == 1
        period = agg.period_budgets[0]
        assert (period.year, period.month) == (2024, 5)
        assert period.total == Decimal("200")

    def test_same_period_replaces_categories(self):
        agg = BudgetAggregate("u1")
        agg.set_period_budget(2024, 5, {"diaperBudget": 100, "foodBudget": 100})
        agg.set_period_budget(2024, 5, {"toysBudget": 50})

        assert len(agg.period_budgets) == 1
        assert agg.period_budgets[0].categories == {"toysBudget": Decimal("50")}

    def test_other_period_kept_in_order(self):
        agg = BudgetAggregate("u1")
        agg.set_period_budget(2024, 5, {"foodBudget": 10})
        agg.set_period_budget(2024, 6, {"foodBudget": 20})
        agg.set_period_budget(2024, 5, {"foodBudget": 30})

        assert [(p.year, p.month) for p in agg.period_budgets] == [(2024, 5), (2024, 6)]
        assert agg.period_budgets[0].categories["foodBudget"] == Decimal("30")


class TestSpending:
    def test_add_items_updates_total(self):
        agg = BudgetAggregate("u1")
        agg.add_items([
            ("food", SpendingItem.new("2024-05-01", "formula", 30)),
            ("toys", SpendingItem.new("2024-05-02", "rattle", "12.50")),
        ])

        assert agg.total_spent == Decimal("42.50")
        assert len(agg.spending_for("food")) == 1
        assert agg.spending_for("toys")[0].item_name == "rattle"

    def test_add_items_all_or_nothing(self):
        agg = BudgetAggregate("u1")
        with pytest.raises(BudgetValidationError):
            agg.add_items([
                ("food", SpendingItem.new("2024-05-01", "formula", 30)),
                ("candy", SpendingItem.new("2024-05-01", "lollipop", 5)),
            ])

        assert agg.total_spent == Decimal("0")
        assert agg.spending_for("food") == []

    def test_uids_are_unique(self):
        a = SpendingItem.new("2024-05-01", "a", 1)
        b = SpendingItem.new("2024-05-01", "b", 1)
        assert a.uid != b.uid

    def test_replace_moves_item_between_categories(self):
        agg = BudgetAggregate("u1")
        item = SpendingItem.new("2024-05-01", "formula", 30)
        agg.add_items([("food", item)])

        updated = agg.replace_item(item.uid, "diaper", "2024-05-02", "wipes", 50)

        assert updated.uid == item.uid
        assert agg.spending_for("food") == []
        assert agg.spending_for("diaper") == [updated]
        assert agg.total_spent == Decimal("50")

    def test_replace_unknown_uid(self):
        agg = BudgetAggregate("u1")
        agg.add_items([("food", SpendingItem.new("2024-05-01", "formula", 30))])

        with pytest.raises(SpendingNotFoundError):
            agg.replace_item("missing", "food", "2024-05-01", "x", 1)
        assert agg.total_spent == Decimal("30")

    def test_replace_invalid_category_keeps_item(self):
        agg = BudgetAggregate("u1")
        item = SpendingItem.new("2024-05-01", "formula", 30)
        agg.add_items([("food", item)])

        with pytest.raises(BudgetValidationError):
            agg.replace_item(item.uid, "candy", "2024-05-01", "x", 1)
        assert agg.spending_for("food") == [item]

    def test_remove_item(self):
        agg = BudgetAggregate("u1")
        item = SpendingItem.new("2024-05-01", "formula", 30)
        agg.add_items([("food", item)])

        removed = agg.remove_item(item.uid)

        assert removed == item
        assert agg.total_spent == Decimal("0")
        assert agg.spending_for("food") == []

    def test_remove_unknown_uid_keeps_total(self):
        agg = BudgetAggregate("u1")
        agg.add_items([("food", SpendingItem.new("2024-05-01", "formula", 30))])

        with pytest.raises(SpendingNotFoundError):
            agg.remove_item("missing")
        assert agg.total_spent == Decimal("30")

    def test_find_item_uses_declaration_order(self):
        agg = BudgetAggregate("u1")
        shared = SpendingItem(uid="dup", date="2024-05-01", item_name="x", amount=Decimal("1"))
        agg.add_items([("other", shared), ("diaper", shared)])

        assert agg.find_item("dup") == ("diaper", 0)

    def test_total_matches_items_after_mutations(self):
        agg = BudgetAggregate("u1")
        items = [SpendingItem.new("2024-05-01", f"item{i}", i * 3) for i in range(1, 6)]
        agg.add_items([(SPENDING_CATEGORIES[i], item) for i, item in enumerate(items)])
        assert agg.total_spent == _sum_items(agg)

        agg.replace_item(items[0].uid, "other", "2024-05-03", "changed", 100)
        assert agg.total_spent == _sum_items(agg)

        agg.remove_item(items[2].uid)
        assert agg.total_spent == _sum_items(agg)


class TestDocumentMapping:
    def test_document_round_trip(self):
        agg = BudgetAggregate("u1")
        agg.set_period_budget(2024, 5, {"foodBudget": 100})
        item = SpendingItem.new("2024-05-01", "formula", "30.25")
        agg.add_items([("food", item)])

        doc = agg.to_document()
        assert doc["userId"] == "u1"
        assert doc["totalSpent"] == "30.25"
        assert doc["periodBudgets"][0]["totalBudget"] == "100"
        assert doc["categorySpending"]["food"][0]["itemName"] == "formula"

        restored = BudgetAggregate.from_document(doc)
        assert restored.total_spent == Decimal("30.25")
        assert restored.spending_for("food") == [item]
        assert restored.period_budgets[0].categories == {"foodBudget": Decimal("100")}

    def test_total_recomputed_from_items(self):
        doc = BudgetAggregate("u1").to_document()
        doc["categorySpending"]["toys"] = [
            {"uid": "a", "date": "2024-05-01", "itemName": "ball", "amount": "7"},
        ]
        doc["totalSpent"] = "999"

        assert BudgetAggregate.from_document(doc).total_spent == Decimal("7")
