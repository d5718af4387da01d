"""
Money helpers and totals engine tests
Testing: Decimal conversion, half-up rounding, invoice totals and reconciliation
"""
from decimal import Decimal
from types import SimpleNamespace

import pytest

from models import InvoiceStatus
from services import (
    ArithmeticInvariantViolation,
    ValidationError,
    check_invariants,
    compute_line_total,
    compute_totals,
    round_money,
    status_after_payment_change,
    sum_money,
    to_decimal,
)
from services.money import MAX_QUANTITY, require_scale, require_within


class TestMoney:
    """Decimal conversion and rounding"""

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_round_half_up(self):
        assert round_money("2.675") == Decimal("2.68")
        assert round_money("2.665") == Decimal("2.67")
        assert round_money("-1.005") == Decimal("-1.01")

    def test_sum_is_exact(self):
        assert sum_money(["0.10"] * 10) == Decimal("1.00")

    @pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity", True, None])
    def test_rejects_non_amounts(self, bad):
        with pytest.raises(ValidationError):
            to_decimal(bad)

    def test_require_scale(self):
        assert require_scale("50.000", "amount") == Decimal("50.000")
        with pytest.raises(ValidationError):
            require_scale("10.005", "amount")

    def test_unquantizable_values_are_validation_errors(self):
        with pytest.raises(ValidationError):
            require_scale("1e30", "amount")
        with pytest.raises(ValidationError):
            round_money("1e30")

    def test_require_within(self):
        assert require_within("9999999999.99", "amount") == Decimal("9999999999.99")
        assert require_within("-9999999999.99", "amount") == Decimal("-9999999999.99")
        with pytest.raises(ValidationError):
            require_within("10000000000.00", "amount")
        with pytest.raises(ValidationError):
            require_within("100000000", "quantity", MAX_QUANTITY)


class TestTotals:
    """Totals computed from the full line-item list"""

    def test_line_total_rounds(self):
        assert compute_line_total("3", "0.335") == Decimal("1.01")

    def test_invoice_totals(self):
        items = [{"quantity": "2", "unit_price": "50.00"}]
        totals = compute_totals(items, "0.1", "60.00")
        assert totals.subtotal == Decimal("100.00")
        assert totals.tax_amount == Decimal("10.00")
        assert totals.total == Decimal("110.00")
        assert totals.amount_due == Decimal("50.00")

    def test_accepts_objects(self):
        items = [SimpleNamespace(quantity=Decimal("1"), unit_price=Decimal("19.99"))]
        totals = compute_totals(items, "0.0825")
        assert totals.tax_amount == Decimal("1.65")
        assert totals.total == Decimal("21.64")

    def test_empty_invoice(self):
        totals = compute_totals([], "0.2")
        assert totals == (Decimal("0.00"), Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))

    def test_overpayment_gives_negative_balance(self):
        totals = compute_totals([{"quantity": 1, "unit_price": "100.00"}], 0, "110.00")
        assert totals.amount_due == Decimal("-10.00")

    def test_check_invariants_passes(self):
        invoice = SimpleNamespace(
            id=1,
            subtotal=Decimal("100.00"),
            tax_amount=Decimal("10.00"),
            total=Decimal("110.00"),
            amount_paid=Decimal("60.00"),
            amount_due=Decimal("50.00"),
        )
        check_invariants(invoice, [Decimal("60.00")])

    def test_check_invariants_detects_drift(self):
        invoice = SimpleNamespace(
            id=1,
            subtotal=Decimal("100.00"),
            tax_amount=Decimal("10.00"),
            total=Decimal("110.00"),
            amount_paid=Decimal("60.00"),
            amount_due=Decimal("50.00"),
        )
        with pytest.raises(ArithmeticInvariantViolation) as exc_info:
            check_invariants(invoice, [Decimal("50.00")])
        assert exc_info.value.details["payments_sum"] == "50.00"


class TestDerivedStatus:
    """Status derived from the payment ledger"""

    @pytest.mark.parametrize("paid, due, expected", [
        ("0.00", "110.00", InvoiceStatus.SENT),
        ("60.00", "50.00", InvoiceStatus.PARTIALLY_PAID),
        ("110.00", "0.00", InvoiceStatus.PAID),
        ("120.00", "-10.00", InvoiceStatus.PAID),
    ])
    def test_status_after_payment_change(self, paid, due, expected):
        assert status_after_payment_change(Decimal(paid), Decimal(due)) == expected

    def test_zero_total_with_no_payment_stays_sent(self):
        assert status_after_payment_change(Decimal("0"), Decimal("0")) == InvoiceStatus.SENT
