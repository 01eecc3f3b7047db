from app_stall.app_container import AppContainer
from app_stall.main import create_app
from conftest import make_config


ADMIN = {'X-Stall-Role': 'ADMIN', 'X-Stall-User': 'Owner'}
WORKER = {'X-Stall-Role': 'WORKER', 'X-Stall-User': 'Ravi'}


def checkout_two_burgers(client, **extra):
    client.post('/api/cart/items', json={'item_id': '1'})
    client.post('/api/cart/items', json={'item_id': '1'})
    body = {'payment_method': 'CASH', 'cash_received': '200', 'settled_by': 'Ravi'}
    body.update(extra)
    return client.post('/api/checkout', json=body, headers=WORKER)


def test_health(client):
    data = client.get('/api/health').get_json()
    assert data['terminal_id'] == 'T1'
    assert data['namespace'] == 'kc-high'
    assert data['replication'] is False
    assert data['next_token'] == 1


def test_menu_listing_and_permissions(client):
    data = client.get('/api/menu').get_json()
    assert len(data['items']) == 6
    assert 'Drinks' in data['categories']

    new_item = {'name': 'Paneer Roll', 'price': '70', 'category': 'Food'}
    assert client.post('/api/menu', json=new_item, headers=WORKER).status_code == 403
    r = client.post('/api/menu', json=new_item, headers=ADMIN)
    assert r.status_code == 201
    item_id = r.get_json()['item']['id']

    assert client.put(f'/api/menu/{item_id}', json={'price': '75'}, headers=ADMIN).get_json()['item']['price'] == '75'
    assert client.put('/api/menu/zzz', json={'price': '75'}, headers=ADMIN).status_code == 404
    assert client.post('/api/menu', json={'name': 'x'}, headers=ADMIN).status_code == 400

    toggled = client.post(f'/api/menu/{item_id}/toggle', headers=WORKER).get_json()
    assert toggled['item']['is_available'] is False
    assert client.delete(f'/api/menu/{item_id}', headers=ADMIN).status_code == 200


def test_cart_endpoints(client):
    r = client.post('/api/cart/items', json={'item_id': '2'})
    assert r.get_json()['cart']['total_items'] == 1
    assert client.post('/api/cart/items', json={'item_id': 'nope'}).status_code == 400

    r = client.patch('/api/cart/items/2', json={'delta': 2, 'instructions': 'extra cheese'})
    line = r.get_json()['cart']['items'][0]
    assert line['quantity'] == 3
    assert line['instructions'] == 'extra cheese'

    totals = client.post('/api/cart/totals', json={
        'payment_method': 'CASH', 'cash_received': '100',
        'discount_type': 'fixed', 'discount_value': '20',
    }).get_json()['totals']
    assert totals['subtotal'] == '120'
    assert totals['total'] == '105.00'
    assert totals['cash_change'] == '0'
    assert totals['cash_sufficient'] is False

    assert client.delete('/api/cart/items/2').status_code == 200
    assert client.get('/api/cart').get_json()['items'] == []


def test_checkout_flow(client):
    r = checkout_two_burgers(client)
    assert r.status_code == 201
    data = r.get_json()
    sale = data['sale']
    assert sale['token_number'] == 1
    assert sale['total'] == '178.50'
    assert sale['cash_change'] == '21.50'
    assert data['totals']['tax_amount'] == '8.50'
    assert sale['id'] in data['mensaje']

    drawer = client.get('/api/drawer').get_json()['drawer']
    assert drawer['expected'] == '1178.50'

    assert client.get(f"/api/sales/{sale['id']}").get_json()['sale']['status'] == 'PENDING'
    assert [s['id'] for s in client.get('/api/sales/token/1').get_json()['sales']] == [sale['id']]
    assert client.get('/api/sales/active').get_json()['orders'][0]['id'] == sale['id']
    assert client.get('/api/sales?q=ravi').get_json()['count'] == 1
    assert 'print_error' not in data


class JammedPrinter:
    def print_text(self, job_name, text):
        raise OSError('printer offline')


def test_checkout_survives_printer_failure(tmp_path):
    c = AppContainer(make_config(tmp_path, 'T1', print_hub=True), printer=JammedPrinter()).start()
    c.settings_service.update_settings({'printer_enabled': True}, 'ADMIN')
    with create_app(c).test_client() as jammed:
        r = checkout_two_burgers(jammed)
        assert r.status_code == 201
        data = r.get_json()
        assert 'printer offline' in data['print_error']
        assert jammed.get('/api/sales').get_json()['count'] == 1
        assert jammed.get('/api/cart').get_json()['items'] == []
    c.close()


def test_checkout_rejections(client):
    assert client.post('/api/checkout', json={'payment_method': 'CARD', 'settled_by': 'Ravi'}).status_code == 400
    r = checkout_two_burgers(client, cash_received='50')
    assert r.status_code == 400
    assert client.get('/api/cart').get_json()['total_items'] == 2
    assert client.get('/api/sales').get_json()['count'] == 0


def test_status_and_void(client):
    sale_id = checkout_two_burgers(client).get_json()['sale']['id']

    r = client.post(f'/api/sales/{sale_id}/status', json={'status': 'READY'}, headers=WORKER)
    assert r.get_json()['changed'] is True
    assert r.get_json()['old_status'] == 'PENDING'
    assert client.post('/api/sales/BILL-NOPE/status', json={'status': 'READY'}).status_code == 404

    assert client.post(f'/api/sales/{sale_id}/void', json={}).status_code == 400
    r = client.post(f'/api/sales/{sale_id}/void', json={'confirm': True}, headers=WORKER)
    assert r.status_code == 200
    assert r.get_json()['sale']['is_voided'] is True
    assert client.post(f'/api/sales/{sale_id}/status', json={'status': 'SERVED'}).status_code == 400

    assert client.get('/api/drawer').get_json()['drawer']['expected'] == '1000'
    history = client.get('/api/sales').get_json()
    assert history['count'] == 1
    assert history['sales'][0]['is_voided'] is True


def test_receipt_text(client):
    sale_id = checkout_two_burgers(client).get_json()['sale']['id']
    r = client.get(f'/api/sales/{sale_id}/receipt')
    assert r.mimetype == 'text/plain'
    text = r.get_data(as_text=True)
    assert 'KC HIGH' in text
    assert 'TOKEN NUMBER' in text
    assert client.get(f'/api/sales/{sale_id}/receipt?copy=kitchen').status_code == 200
    assert client.get(f'/api/sales/{sale_id}/receipt?copy=menu').status_code == 400
    assert client.get('/api/sales/BILL-NOPE/receipt').status_code == 404


def test_reprint_without_printer(client):
    sale_id = checkout_two_burgers(client).get_json()['sale']['id']
    r = client.post(f'/api/sales/{sale_id}/reprint')
    assert r.get_json()['mode'] == 'disabled'


def test_settings_and_opening_cash(client):
    assert client.put('/api/settings', json={'tax_rate': '0'}, headers=WORKER).status_code == 403
    r = client.put('/api/settings', json={'tax_rate': '0', 'footer_message': 'Bye'}, headers=ADMIN)
    assert r.status_code == 200
    assert r.get_json()['settings']['tax_rate'] == '0'
    assert client.put('/api/settings', json={'tax_rate': 'x'}, headers=ADMIN).status_code == 400

    assert client.put('/api/opening-cash', json={'amount': '500'}, headers=WORKER).status_code == 403
    assert client.put('/api/opening-cash', json={'amount': '500'}, headers=ADMIN).status_code == 200
    assert client.get('/api/settings').get_json()['opening_cash'] == '500'
    assert client.get('/api/drawer').get_json()['drawer']['expected'] == '500'


def test_reports_summary(client):
    checkout_two_burgers(client)
    client.post('/api/cart/items', json={'item_id': '4'})
    client.post('/api/checkout', json={'payment_method': 'UPI', 'settled_by': 'Meena'})

    summary = client.get('/api/reports/summary?period=today').get_json()['summary']
    assert summary['order_count'] == 2
    assert summary['gross_revenue'] == '204.75'
    assert summary['revenue_by_method']['UPI'] == '26.25'
    assert summary['item_ranking'][0]['name'] == 'Classic Burger'
    assert summary['revenue_by_staff'] == {'Meena': '26.25', 'Ravi': '178.50'}


def test_audit_is_admin_only(client):
    checkout_two_burgers(client)
    assert client.get('/api/audit', headers=WORKER).status_code == 403
    logs = client.get('/api/audit?type=VENTA', headers=ADMIN).get_json()['logs']
    assert len(logs) == 1


def test_resync_without_replication(client):
    assert client.post('/api/sync/resync').status_code == 400
