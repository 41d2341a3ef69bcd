"""Tests for greedy settlement matching."""

from decimal import Decimal

import pytest

from chapter_ledger.balances import compute_expense_balances
from chapter_ledger.exceptions import BalanceIntegrityWarning, DuplicateParticipantError
from chapter_ledger.models import Expense, NetBalance, SettlementInstruction
from chapter_ledger.settlement import apply_settlement, compute_settlement
from chapter_ledger.splitter import compute_equal_split


def nets(**values: str) -> list[NetBalance]:
    """Build net balances from keyword arguments."""
    return [
        NetBalance(member_id=member, net=Decimal(net)) for member, net in values.items()
    ]


def plan(instructions) -> list[tuple]:
    return [(i.from_member_id, i.to_member_id, i.amount) for i in instructions]


class TestComputeSettlement:
    """Greedy largest debtor vs largest creditor matching."""

    def test_two_debtors_one_creditor(self):
        instructions, warning = compute_settlement(nets(A="-30", B="-20", C="50"))

        assert plan(instructions) == [
            ("A", "C", Decimal("30.00")),
            ("B", "C", Decimal("20.00")),
        ]
        assert warning is None

    def test_one_debtor_two_creditors(self):
        instructions, warning = compute_settlement(nets(A="-100", B="70", C="30"))

        assert plan(instructions) == [
            ("A", "B", Decimal("70.00")),
            ("A", "C", Decimal("30.00")),
        ]
        assert warning is None

    def test_largest_matched_first(self):
        instructions, _ = compute_settlement(
            nets(A="-10", B="-40", C="25", D="25")
        )

        assert plan(instructions)[0] == ("B", "C", Decimal("25.00"))
        assert len(instructions) == 3

    def test_all_settled(self):
        instructions, warning = compute_settlement(nets(A="0", B="0.00"))

        assert instructions == []
        assert warning is None

    def test_empty_input(self):
        assert compute_settlement([]) == ([], None)

    def test_settled_members_excluded(self):
        instructions, _ = compute_settlement(nets(A="-5", B="0", C="5"))

        assert plan(instructions) == [("A", "C", Decimal("5.00"))]

    def test_cent_amounts(self):
        instructions, warning = compute_settlement(
            nets(A="-3.34", B="-3.33", C="6.67")
        )

        assert plan(instructions) == [
            ("A", "C", Decimal("3.34")),
            ("B", "C", Decimal("3.33")),
        ]
        assert warning is None

    def test_instructions_are_models(self):
        instructions, _ = compute_settlement(nets(A="-1", B="1"))

        assert instructions == [
            SettlementInstruction(
                from_member_id="A", to_member_id="B", amount=Decimal("1.00")
            )
        ]

    def test_duplicate_member_rejected(self):
        balances = [
            NetBalance(member_id=1, net=Decimal("-5")),
            NetBalance(member_id=1, net=Decimal("5")),
        ]

        with pytest.raises(DuplicateParticipantError):
            compute_settlement(balances)


class TestTieBreaking:
    """Equal magnitudes resolve by member id."""

    def test_equal_debtors_ordered_by_id(self):
        instructions, _ = compute_settlement(nets(C="-10", A="-10", B="20"))

        assert [i.from_member_id for i in instructions] == ["A", "C"]

    def test_equal_creditors_ordered_by_id(self):
        instructions, _ = compute_settlement(
            [
                NetBalance(member_id=12, net=Decimal("10")),
                NetBalance(member_id=3, net=Decimal("10")),
                NetBalance(member_id=7, net=Decimal("-20")),
            ]
        )

        assert [i.to_member_id for i in instructions] == [3, 12]

    def test_input_order_does_not_matter(self):
        forward = nets(A="-10", B="-10", C="-5", D="15", E="10")
        backward = list(reversed(forward))

        assert compute_settlement(forward) == compute_settlement(backward)

    def test_repeated_calls_identical(self):
        balances = nets(A="-12.50", B="-7.50", C="-30", D="25", E="25")

        first = compute_settlement(balances)
        second = compute_settlement(balances)

        assert first == second


class TestSettlementProperties:
    """Every consistent input settles fully in at most n - 1 payments."""

    @pytest.mark.parametrize(
        "values",
        [
            ["-30", "-20", "50"],
            ["-1", "-1", "-1", "3"],
            ["100", "-33.33", "-33.33", "-33.34"],
            ["12.34", "-56.78", "44.44", "7.00", "-7.00"],
            ["-0.01", "0.01"],
            ["60", "-10", "-10", "-10", "-10", "-10", "-10"],
        ],
    )
    def test_residuals_zero_and_count_bounded(self, values):
        balances = [
            NetBalance(member_id=index, net=Decimal(value))
            for index, value in enumerate(values)
        ]

        instructions, warning = compute_settlement(balances)
        residuals = apply_settlement(balances, instructions)

        assert warning is None
        assert all(residual == 0 for residual in residuals.values())
        assert len(instructions) <= len(balances) - 1
        assert all(i.amount > 0 for i in instructions)

    def test_settles_aggregated_chapter(self):
        expenses = [
            Expense(
                chapter_id=1,
                payer_member_id=payer,
                total_amount=Decimal(amount),
                splits=compute_equal_split(Decimal(amount), participants),
            )
            for payer, amount, participants in [
                (1, "100.00", [1, 2, 3]),
                (2, "47.51", [1, 2, 3, 4]),
                (3, "9.99", [2, 4]),
                (4, "250.00", [1, 2, 3, 4]),
            ]
        ]
        balances = compute_expense_balances(expenses)

        instructions, warning = compute_settlement(balances)

        assert warning is None
        assert all(r == 0 for r in apply_settlement(balances, instructions).values())
        assert len(instructions) <= len(balances) - 1


class TestIntegrityWarning:
    """Inconsistent input still terminates and surfaces a warning."""

    def test_excess_credit_left_over(self):
        instructions, warning = compute_settlement(nets(A="-30", B="50"))

        assert plan(instructions) == [("A", "B", Decimal("30.00"))]
        assert isinstance(warning, BalanceIntegrityWarning)
        assert warning.imbalance == Decimal("20.00")
        assert warning.residuals == {"B": Decimal("20.00")}

    def test_excess_debt_left_over(self):
        instructions, warning = compute_settlement(nets(A="-30", B="-5", C="20"))

        assert plan(instructions) == [("A", "C", Decimal("20.00"))]
        assert warning is not None
        assert warning.imbalance == Decimal("-15.00")
        assert warning.residuals == {"A": Decimal("-10.00"), "B": Decimal("-5.00")}

    def test_one_cent_imbalance_is_reported(self):
        _, warning = compute_settlement(nets(A="-50.00", B="49.99"))

        assert warning is not None
        assert warning.imbalance == Decimal("-0.01")
        assert warning.residuals == {"A": Decimal("-0.01")}

    def test_only_creditors(self):
        instructions, warning = compute_settlement(nets(A="10", B="5"))

        assert instructions == []
        assert warning is not None
        assert warning.residuals == {"A": Decimal("10.00"), "B": Decimal("5.00")}
        assert "do not sum to zero" in str(warning)
