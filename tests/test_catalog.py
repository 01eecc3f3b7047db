from decimal import Decimal


def test_initial_menu_is_seeded(container):
    items = container.catalog_service.list_items()
    assert [i.id for i in items] == ['1', '2', '3', '4', '5', '6']
    assert items[0].price == Decimal('85')
    assert all(i.is_available for i in items)


def test_create_item_validates_fields(container):
    catalog = container.catalog_service
    assert not catalog.create_item({'name': '', 'price': '10', 'category': 'Food'})['ok']
    assert not catalog.create_item({'name': 'Samosa', 'price': '-1', 'category': 'Food'})['ok']
    assert not catalog.create_item({'name': 'Samosa', 'price': 'abc', 'category': 'Food'})['ok']
    assert not catalog.create_item({'name': 'Samosa', 'price': '15', 'category': ''})['ok']

    result = catalog.create_item({'name': 'Samosa', 'price': '15', 'category': 'Snacks'}, 'Asha')
    assert result['ok']
    assert catalog.get_item(result['item'].id).name == 'Samosa'
    assert 'Snacks' in catalog.categories()


def test_duplicate_id_rejected(container):
    result = container.catalog_service.create_item(
        {'id': '1', 'name': 'Another', 'price': '10', 'category': 'Food'}
    )
    assert not result['ok']


def test_toggle_and_filters(container):
    catalog = container.catalog_service
    catalog.toggle_availability('5')
    assert '5' not in [i.id for i in catalog.list_items(available_only=True)]
    assert [i.id for i in catalog.list_items(category='Drinks')] == ['4', '5']
    assert [i.id for i in catalog.list_items(query='burger')] == ['1']


def test_unknown_item_reports_not_found(container):
    catalog = container.catalog_service
    assert catalog.update_item('zz', {'name': 'x'})['not_found']
    assert catalog.delete_item('zz')['not_found']
    assert catalog.toggle_availability('zz')['not_found']


def test_deleting_item_keeps_sale_history(container, add_items):
    add_items(container, '6')
    sale = container.ledger_service.commit('CARD', 'Ravi')['sale']
    assert container.catalog_service.delete_item('6')['ok']
    stored = container.ledger_service.get_sale(sale.id)
    assert stored.items[0].name == 'Tacos (3pcs)'
    assert stored.items[0].price == Decimal('90')


def test_replace_all_with_invalid_item_keeps_catalog(container):
    catalog = container.catalog_service
    assert not catalog.replace_all([{'name': 'no id'}])
    assert len(catalog.list_items()) == 6
    assert catalog.replace_all([{'id': 'a', 'name': 'Chai', 'price': '10', 'category': 'Drinks'}])
    assert [i.id for i in catalog.list_items()] == ['a']


def test_menu_changes_are_audited(container):
    container.catalog_service.create_item({'name': 'Kulfi', 'price': '20', 'category': 'Dessert'}, 'Asha')
    logs = container.audit_service.get_logs(log_type='MENU')
    assert logs and 'Kulfi' in logs[0]['message']
