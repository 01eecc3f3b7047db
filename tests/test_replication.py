import json
import os

from app_stall.app_container import AppContainer
from app_stall.models import MessageType, OrderStatus, ReplicationMessage
from app_stall.models.replication import apply_message_to_snapshot, empty_snapshot, namespace_for
from conftest import make_config


def read_sales_file(terminal):
    with open(os.path.join(terminal.config.data_dir, 'sales.json'), 'r', encoding='utf-8') as f:
        return json.load(f)


def test_namespace_from_stall_name():
    assert namespace_for('KC HIGH') == 'kc-high'
    assert namespace_for("  Bob's  Tacos! ") == 'bob-s-tacos'
    assert namespace_for('') == 'default'


def test_sale_and_status_changes_replicate(terminals, add_items):
    t1, t2 = terminals
    add_items(t1, '1', '1')
    sale = t1.ledger_service.commit('CASH', 'Ravi', '200')['sale']

    copy = t2.ledger_service.get_sale(sale.id)
    assert copy is not None
    assert copy.token_number == sale.token_number
    assert copy.total == sale.total

    t2.ledger_service.update_status(sale.id, 'READY', 'Meena')
    assert t1.ledger_service.get_sale(sale.id).status == OrderStatus.READY
    assert t1.drawer_service.summary()['expected'] == t2.drawer_service.summary()['expected']


def test_applying_same_record_twice_is_idempotent(terminals, add_items):
    t1, t2 = terminals
    add_items(t1, '2')
    sale = t1.ledger_service.commit('CARD', 'Ravi')['sale']
    before = read_sales_file(t2)

    assert not t2.ledger_service.apply_remote(sale.to_dict())
    assert not t2.ledger_service.apply_remote(sale.to_dict())
    assert read_sales_file(t2) == before


def test_conflicting_updates_converge(tmp_path, make_record):
    # Two isolated terminals change the same sale concurrently
    a = AppContainer(make_config(tmp_path, 'A'))
    b = AppContainer(make_config(tmp_path, 'B'))
    seed = make_record(token=3).to_dict()
    a.ledger_service.apply_remote(seed)
    b.ledger_service.apply_remote(seed)

    a.ledger_service.update_status(seed['id'], 'READY')
    b.ledger_service.void(seed['id'], confirm=True)

    from_a = a.ledger_service.get_sale(seed['id']).to_dict()
    from_b = b.ledger_service.get_sale(seed['id']).to_dict()
    a.ledger_service.apply_remote(from_b)
    b.ledger_service.apply_remote(from_a)

    assert a.ledger_service.get_sale(seed['id']).to_dict() == b.ledger_service.get_sale(seed['id']).to_dict()
    assert a.ledger_service.get_sale(seed['id']).status == OrderStatus.VOIDED


def test_stale_update_is_ignored(container, make_record):
    record = make_record(token=5)
    newer = make_record(id=record.id, token=5, status=OrderStatus.READY, revision=2)
    older = make_record(id=record.id, token=5, status=OrderStatus.PENDING, revision=1)

    ledger = container.ledger_service
    assert ledger.apply_remote(newer.to_dict())
    assert not ledger.apply_remote(older.to_dict())
    assert ledger.get_sale(record.id).status == OrderStatus.READY


def test_snapshot_folding_is_order_independent(make_record):
    first = make_record(token=1)
    second = make_record(id=first.id, token=1, status=OrderStatus.SERVED, revision=1)
    messages = [
        ReplicationMessage(MessageType.SALES_UPDATE, first.to_dict()),
        ReplicationMessage(MessageType.SALES_UPDATE, second.to_dict()),
    ]
    forward, backward = empty_snapshot(), empty_snapshot()
    for m in messages:
        apply_message_to_snapshot(forward, m)
    for m in reversed(messages):
        apply_message_to_snapshot(backward, m)
    assert forward == backward
    assert forward['sales'][first.id]['status'] == 'SERVED'


def test_menu_settings_and_opening_cash_replicate(terminals):
    t1, t2 = terminals
    created = t1.catalog_service.create_item({'name': 'Masala Chai', 'price': '20', 'category': 'Drinks'})
    assert t2.catalog_service.get_item(created['item'].id).name == 'Masala Chai'

    t1.settings_service.update_settings(
        {'footer_message': 'Come back soon', 'tax_rate': '12', 'is_print_hub': True}, 'ADMIN'
    )
    settings = t2.settings_service.get_settings()
    assert settings.footer_message == 'Come back soon'
    assert str(settings.tax_rate) == '12'
    assert settings.is_print_hub is False

    t1.settings_service.set_opening_cash('2500', 'ADMIN')
    assert str(t2.settings_service.get_opening_cash()) == '2500'


def test_worker_cannot_change_settings(container):
    result = container.settings_service.update_settings({'tax_rate': '0'}, 'WORKER')
    assert not result['ok']
    assert not container.settings_service.set_opening_cash('1', 'WORKER')['ok']
    assert str(container.settings_service.get_settings().tax_rate) == '5'


def test_own_and_invalid_messages_are_ignored(terminals):
    t1, t2 = terminals
    own = ReplicationMessage(MessageType.SALES_UPDATE, {'id': 'X'}, origin='T2')
    assert not t2.replication_service.handle(own)

    bad = ReplicationMessage(MessageType.SALES_UPDATE, {'id': 'BAD', 'token_number': 'abc'}, origin='T1')
    assert not t2.replication_service.handle(bad)
    bad_cash = ReplicationMessage(MessageType.OPENING_CASH_UPDATE, 'lots', origin='T1')
    assert not t2.replication_service.handle(bad_cash)
    bad_menu = ReplicationMessage(MessageType.INVENTORY_UPDATE, {'id': '1'}, origin='T1')
    assert not t2.replication_service.handle(bad_menu)

    assert t2.ledger_service.list_records() == []
    assert str(t2.settings_service.get_opening_cash()) == '1000'
    assert len(t2.catalog_service.list_items()) == 6


def test_late_terminal_catches_up_with_resync(tmp_path, hub, terminals, add_items):
    t1, t2 = terminals
    add_items(t1, '1')
    sale = t1.ledger_service.commit('CARD', 'Ravi')['sale']
    t2.ledger_service.update_status(sale.id, 'SERVED')
    t1.settings_service.set_opening_cash('750', 'ADMIN')

    t3 = AppContainer(make_config(tmp_path, 'T3'), hub=hub).start()
    assert t3.ledger_service.list_records() == []
    result = t3.replication_service.resync()
    assert result == {'ok': True, 'merged': 1, 'republished': 0}
    assert t3.ledger_service.get_sale(sale.id).status == OrderStatus.SERVED
    assert str(t3.settings_service.get_opening_cash()) == '750'
    assert t3.ledger_service.next_token_preview() == 2
    t3.close()


def test_print_hub_prints_for_other_terminals(tmp_path, hub, add_items):
    t1 = AppContainer(make_config(tmp_path, 'T1'), hub=hub).start()
    t2 = AppContainer(make_config(tmp_path, 'T2', print_hub=True), hub=hub).start()
    t1.settings_service.update_settings({'printer_enabled': True}, 'ADMIN')
    assert t2.settings_service.get_settings().printer_enabled
    assert t2.print_service.is_hub
    assert not t1.print_service.is_hub

    add_items(t1, '1')
    sale = t1.ledger_service.commit('CARD', 'Ravi')['sale']

    assert sorted(os.listdir(t2.config.spool_dir)) == [
        f'{sale.id}-customer.txt', f'{sale.id}-kitchen.txt'
    ]
    assert not os.path.exists(t1.config.spool_dir)

    reprint = t2.print_service.reprint(t2.ledger_service.get_sale(sale.id))
    assert reprint['mode'] == 'local'
    with open(reprint['paths'][0], 'r', encoding='utf-8') as f:
        assert 'DUPLICATE RECEIPT' in f.read()
    t1.close()
    t2.close()


def test_printing_disabled_by_default(container, add_items):
    add_items(container, '1')
    sale = container.ledger_service.commit('CARD', 'Ravi')['sale']
    assert container.print_service.request_print(sale)['mode'] == 'disabled'


def test_isolated_terminal_without_hub_cannot_print(container, add_items):
    container.settings_service.update_settings({'printer_enabled': True}, 'ADMIN')
    add_items(container, '1')
    sale = container.ledger_service.commit('CARD', 'Ravi')['sale']
    result = container.print_service.request_print(sale)
    assert not result['ok']
    assert result['mode'] == 'none'
