from decimal import Decimal

from app_stall.models import CartItem, Discount, DiscountType, PaymentMethod
from app_stall.services.pricing_service import compute_discount, compute_totals


def burger(quantity=1):
    return CartItem(id='1', name='Classic Burger', price=Decimal('85'), category='Food', quantity=quantity)


def fries(quantity=1):
    return CartItem(id='2', name='Cheese Fries', price=Decimal('40'), category='Sides', quantity=quantity)


def test_two_burgers_with_five_percent_tax():
    totals = compute_totals([burger(2)], Decimal('5'))
    assert totals.subtotal == Decimal('170')
    assert totals.discount_amount == Decimal('0')
    assert totals.tax_amount == Decimal('8.50')
    assert totals.total == Decimal('178.50')


def test_totals_follow_subtotal_discount_tax_identity():
    lines = [burger(3), fries(2)]
    discount = Discount(DiscountType.PERCENT, Decimal('12.5'))
    totals = compute_totals(lines, Decimal('5'), discount)
    assert totals.subtotal == Decimal('335')
    assert totals.taxable_base == totals.subtotal - totals.discount_amount
    assert totals.total == totals.taxable_base + totals.tax_amount
    assert totals.tax_amount == totals.taxable_base * Decimal('5') / Decimal('100')


def test_fixed_discount_is_capped_at_subtotal():
    totals = compute_totals([fries()], Decimal('5'), Discount(DiscountType.FIXED, Decimal('500')))
    assert totals.discount_amount == Decimal('40')
    assert totals.total == Decimal('0')


def test_discount_never_negative():
    assert compute_discount(Decimal('100'), Discount(DiscountType.FIXED, Decimal('0'))) == Decimal('0')
    discount = Discount.from_input('fixed', '-20')
    assert discount.value == Decimal('0')
    assert compute_discount(Decimal('100'), None) == Decimal('0')


def test_invalid_discount_type_rejected():
    try:
        Discount.from_input('bogus', '10')
    except ValueError as e:
        assert 'bogus' in str(e)
    else:
        raise AssertionError('expected ValueError')


def test_cash_change_and_sufficiency():
    ok = compute_totals([burger(2)], Decimal('5'), None, PaymentMethod.CASH, Decimal('200'))
    assert ok.cash_sufficient
    assert ok.cash_change == Decimal('21.50')

    exact = compute_totals([burger(2)], Decimal('5'), None, PaymentMethod.CASH, Decimal('178.50'))
    assert exact.cash_sufficient
    assert exact.cash_change == Decimal('0')

    short = compute_totals([burger(2)], Decimal('5'), None, PaymentMethod.CASH, Decimal('100'))
    assert not short.cash_sufficient
    assert short.cash_change == Decimal('0')


def test_card_payment_has_no_cash_fields():
    totals = compute_totals([burger()], Decimal('5'), None, PaymentMethod.CARD)
    assert totals.cash_received is None
    assert totals.cash_change is None
    assert totals.to_dict()['cash_change'] is None


def test_decimal_sums_do_not_drift():
    lines = [CartItem(id='x', name='Chai', price=Decimal('0.10'), category='Drinks', quantity=1)
             for _ in range(30)]
    totals = compute_totals(lines, Decimal('0'))
    assert totals.total == Decimal('3.00')


def test_empty_cart_totals_are_zero():
    totals = compute_totals([], Decimal('5'), Discount(DiscountType.PERCENT, Decimal('10')))
    assert totals.total == Decimal('0')
    assert totals.discount_amount == Decimal('0')
