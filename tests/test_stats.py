import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app_stall.models import CartItem, OrderStatus
from app_stall.services.stats_service import filter_by_period, summarize, summary_to_json
from app_stall.services.token_service import next_daily_token


def line(item_id, name, price, quantity):
    return CartItem(id=item_id, name=name, price=Decimal(price), category='Food', quantity=quantity)


def test_voided_sales_do_not_count(make_record):
    records = [
        make_record(total='100', method='CARD'),
        make_record(total='50', method='UPI', status=OrderStatus.VOIDED),
        make_record(total='30', method='CASH'),
    ]
    summary = summarize(records)
    assert summary['gross_revenue'] == Decimal('130')
    assert summary['order_count'] == 2
    assert summary['voided_count'] == 1
    assert summary['total_records'] == 3
    assert summary['average_ticket'] == Decimal('65.00')


def test_revenue_by_method_always_has_all_methods(make_record):
    summary = summarize([make_record(total='40', method='UPI')])
    assert summary['revenue_by_method'] == {
        'CASH': Decimal('0'), 'CARD': Decimal('0'), 'UPI': Decimal('40'),
    }


def test_revenue_by_staff(make_record):
    records = [
        make_record(total='10', settled_by='Ravi'),
        make_record(total='15', settled_by='Meena'),
        make_record(total='5', settled_by='Ravi'),
        make_record(total='1', settled_by=''),
    ]
    by_staff = summarize(records)['revenue_by_staff']
    assert by_staff == {'Meena': Decimal('15'), 'Ravi': Decimal('15'), 'Sin nombre': Decimal('1')}


def test_item_ranking_is_independent_of_order(make_record):
    records = [
        make_record(items=[line('1', 'Classic Burger', '85', 2), line('4', 'Iced Tea', '25', 3)]),
        make_record(items=[line('2', 'Cheese Fries', '40', 3)]),
        make_record(items=[line('1', 'Classic Burger', '85', 1)]),
        make_record(items=[line('5', 'Lemonade', '30', 1)], status=OrderStatus.VOIDED),
    ]
    expected = summarize(records)['item_ranking']
    assert [r['name'] for r in expected] == ['Classic Burger', 'Cheese Fries', 'Iced Tea']
    assert expected[0]['quantity'] == 3
    assert expected[0]['revenue'] == Decimal('255')

    shuffled = list(records)
    random.Random(7).shuffle(shuffled)
    assert summarize(shuffled)['item_ranking'] == expected
    assert summarize(list(reversed(records))) == summarize(records)


def test_recent_series_keeps_last_n_in_time_order(make_record):
    records = [make_record(token=n, total=str(n)) for n in range(1, 16)]
    series = summarize(records, recent_size=10)['recent_series']
    assert [p['token_number'] for p in series] == list(range(6, 16))
    assert series[-1]['label'] == '#' + records[-1].id[-4:]


def test_empty_ledger_summary(make_record):
    summary = summarize([])
    assert summary['gross_revenue'] == Decimal('0')
    assert summary['average_ticket'] == Decimal('0')
    assert summary['item_ranking'] == []


def test_custom_period_filter(make_record):
    inside = make_record(ts=datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc))
    outside = make_record(ts=datetime(2026, 4, 5, 8, 0, tzinfo=timezone.utc))
    result = filter_by_period([inside, outside], 'custom', '2026-03-01', '2026-03-31')
    assert result == [inside]


def test_today_uses_same_local_day_as_daily_tokens(make_record):
    midnight = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    just_after = make_record(token=1, ts=midnight + timedelta(minutes=30))
    just_before = make_record(token=9, ts=midnight - timedelta(minutes=30))
    late_tonight = midnight + timedelta(hours=23, minutes=59)

    today = filter_by_period([just_before, just_after], 'today', now=late_tonight)
    assert today == [just_after]
    assert next_daily_token([just_before, just_after], midnight.date()) == len(today) + 1


def test_summary_to_json_converts_decimals(make_record):
    data = summary_to_json(summarize([make_record(total='12.50')]))
    assert data['gross_revenue'] == '12.50'
    assert data['revenue_by_method']['CARD'] == '12.50'
    assert data['item_ranking'][0]['quantity'] == 1


def test_stats_service_reports_period(container, add_items):
    add_items(container, '1')
    container.ledger_service.commit('CARD', 'Ravi')
    summary = container.stats_service.summary('today')
    assert summary['period'] == 'today'
    assert summary['order_count'] == 1
    assert container.stats_service.summary('decade')['period'] == 'all'
