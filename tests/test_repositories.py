import json
import os

from app_stall.repositories import (
    AuditRepository,
    IAuditRepository,
    IMenuRepository,
    IOrdersRepository,
    ISalesRepository,
    ISettingsRepository,
    ISyncRepository,
    MenuRepository,
    OrdersRepository,
    SalesRepository,
    SettingsRepository,
    SyncRepository,
)


def test_json_repositories_satisfy_interfaces(tmp_path):
    data_dir = str(tmp_path)
    assert isinstance(MenuRepository(data_dir), IMenuRepository)
    assert isinstance(SalesRepository(data_dir), ISalesRepository)
    assert isinstance(SettingsRepository(data_dir), ISettingsRepository)
    assert isinstance(AuditRepository(data_dir), IAuditRepository)
    assert isinstance(OrdersRepository(data_dir), IOrdersRepository)
    assert isinstance(SyncRepository(data_dir), ISyncRepository)


def test_first_start_seeds_defaults(tmp_path):
    settings = SettingsRepository(str(tmp_path))
    assert settings.get_bill_settings()['stall_name'] == 'KC HIGH'
    assert settings.get_opening_cash() == '1000'
    assert len(MenuRepository(str(tmp_path)).load()) == 6


def test_corrupt_file_reads_as_empty(tmp_path):
    repo = SalesRepository(str(tmp_path))
    with open(repo.file_path, 'w', encoding='utf-8') as f:
        f.write('{not json')
    assert repo.load() == []
    repo.create_sale({'id': 'BILL-1', 'token_number': 1})
    assert [s['id'] for s in repo.load()] == ['BILL-1']


def test_writes_leave_no_temp_file(tmp_path):
    repo = SalesRepository(str(tmp_path))
    repo.create_sale({'id': 'BILL-1', 'token_number': 1, 'status': 'PENDING'})
    repo.update_sale('BILL-1', lambda sale: dict(sale, status='READY'))
    assert not os.path.exists(repo.file_path + '.tmp')
    with open(repo.file_path, 'r', encoding='utf-8') as f:
        assert json.load(f) == [{'id': 'BILL-1', 'token_number': 1, 'status': 'READY'}]


def test_update_sale_sees_missing_and_unchanged(tmp_path):
    repo = SalesRepository(str(tmp_path))
    repo.create_sale({'id': 'BILL-1', 'token_number': 1, 'status': 'PENDING'})
    seen = []

    def keep(sale):
        seen.append(sale)
        return None

    assert repo.update_sale('BILL-9', keep) is None
    assert repo.update_sale('BILL-1', keep) is None
    assert seen == [None, {'id': 'BILL-1', 'token_number': 1, 'status': 'PENDING'}]
    assert repo.get_by_id('BILL-1')['status'] == 'PENDING'


def test_merge_sale_writes_only_winners(tmp_path):
    repo = SalesRepository(str(tmp_path))

    def higher_rev(local, incoming):
        return incoming['rev'] > local['rev']

    assert repo.merge_sale({'id': 'BILL-1', 'rev': 1}, higher_rev)
    assert not repo.merge_sale({'id': 'BILL-1', 'rev': 0}, higher_rev)
    assert repo.merge_sale({'id': 'BILL-1', 'rev': 2}, higher_rev)
    assert repo.load() == [{'id': 'BILL-1', 'rev': 2}]


def test_sales_lookup_by_token_returns_all(tmp_path):
    repo = SalesRepository(str(tmp_path))
    repo.create_sale({'id': 'BILL-1', 'token_number': 8, 'settled_by': 'Ravi'})
    repo.create_sale({'id': 'BILL-2', 'token_number': 8, 'settled_by': 'Meena'})
    assert [s['id'] for s in repo.get_by_token(8)] == ['BILL-1', 'BILL-2']
    assert [s['id'] for s in repo.search_sales('meena')] == ['BILL-2']


def test_orders_ids_are_sequential(tmp_path):
    repo = OrdersRepository(str(tmp_path))
    assert repo.insert({'order_number': 'a'})['id'] == 1
    assert repo.insert({'order_number': 'b'})['id'] == 2
    assert repo.update_row(2, {'printed': True})['printed'] is True
    assert repo.update_row(5, {'printed': True}) is None


def test_audit_newest_first(tmp_path):
    repo = AuditRepository(str(tmp_path))
    repo.log('VENTA', 'Ravi', 'first')
    repo.log('CAJA', '', 'second')
    logs = repo.load()
    assert [log['message'] for log in logs] == ['second', 'first']
    assert logs[0]['user'] == 'sistema'
