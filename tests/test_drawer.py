import itertools
from decimal import Decimal

from app_stall.models import OrderStatus, SaleRecord
from app_stall.services.drawer_service import drawer_summary, expected_drawer_cash


def test_expected_cash_is_order_independent(make_record):
    records = [
        make_record(total='178.50', method='CASH', received='200', change='21.50'),
        make_record(total='40', method='CASH', received='50', change='10'),
        make_record(total='90', method='CARD'),
        make_record(total='55.25', method='CASH', received='60', change='4.75'),
    ]
    results = {
        expected_drawer_cash(list(order), Decimal('1000'))
        for order in itertools.permutations(records)
    }
    assert results == {Decimal('1273.75')}


def test_voided_and_non_cash_are_excluded(make_record):
    records = [
        make_record(total='100', method='CASH', received='100', change='0', status=OrderStatus.VOIDED),
        make_record(total='100', method='UPI'),
        make_record(total='100', method='CARD'),
    ]
    summary = drawer_summary(records, '500')
    assert summary['expected'] == Decimal('500')
    assert summary['cash_orders'] == 0


def test_legacy_cash_record_without_received_counts_total():
    legacy = SaleRecord.from_dict({
        'id': 'BILL-OLD', 'tokenNumber': 3, 'timestamp': 1700000000000,
        'items': [], 'total': '75', 'paymentMethod': 'CASH', 'status': 'SERVED',
    })
    assert legacy.cash_received == Decimal('75')
    assert legacy.cash_change == Decimal('0')
    assert expected_drawer_cash([legacy], Decimal('1000')) == Decimal('1075')


def test_drawer_breakdown(make_record):
    records = [make_record(total='178.50', method='CASH', received='200', change='21.50')]
    summary = drawer_summary(records, Decimal('1000'))
    assert summary['cash_in'] == Decimal('200')
    assert summary['change_out'] == Decimal('21.50')
    assert summary['cash_sales'] == Decimal('178.50')
    assert summary['expected'] == summary['opening_cash'] + summary['cash_sales']


def test_drawer_json_uses_strings(container, add_items):
    add_items(container, '1', '1')
    container.ledger_service.commit('CASH', 'Ravi', '200')
    data = container.drawer_service.summary_json()
    assert data['expected'] == '1178.50'
    assert data['cash_orders'] == 1
