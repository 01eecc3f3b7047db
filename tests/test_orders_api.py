from datetime import datetime, timedelta, timezone

ORDER = {
    'orderNumber': 8,
    'items': [{'name': 'Classic Burger', 'quantity': 2, 'price': 85}],
    'totalAmount': 178.5,
}


def test_create_and_list_orders(client):
    assert client.get('/api/orders').get_json() == []

    r = client.post('/api/orders', json=ORDER)
    assert r.status_code == 201
    row = r.get_json()
    assert row['id'] == 1
    assert row['order_number'] == '8'
    assert row['status'] == 'PENDING'
    assert row['printed'] is False
    assert row['total_amount'] == '178.50'

    client.post('/api/orders', json=dict(ORDER, orderNumber=9))
    listed = client.get('/api/orders').get_json()
    assert [o['order_number'] for o in listed] == ['9', '8']


def test_create_requires_details(client):
    r = client.post('/api/orders', json={'items': []})
    assert r.status_code == 400
    assert r.get_json() == {'error': 'Missing order details'}
    assert client.post('/api/orders', json={'orderNumber': 3}).status_code == 400


def test_orders_older_than_a_day_are_hidden(client, container):
    old = (datetime.now(timezone.utc) - timedelta(days=2)).isoformat()
    container.orders_repo.insert({
        'order_number': '1', 'items': [], 'total_amount': '10.00',
        'status': 'SERVED', 'printed': True, 'created_at': old,
    })
    client.post('/api/orders', json=ORDER)
    assert [o['order_number'] for o in client.get('/api/orders').get_json()] == ['8']


def test_partial_update(client):
    client.post('/api/orders', json=ORDER)

    r = client.put('/api/orders', json={'id': 1, 'status': 'READY'})
    assert r.status_code == 200
    assert r.get_json()['status'] == 'READY'
    assert r.get_json()['printed'] is False

    r = client.put('/api/orders', json={'id': 1, 'printed': True})
    assert r.get_json()['status'] == 'READY'
    assert r.get_json()['printed'] is True

    # nothing to update: same answer as an unknown id
    r = client.put('/api/orders', json={'id': 1})
    assert r.status_code == 404
    assert r.get_json() == {'error': 'Order not found'}
    assert client.get('/api/orders').get_json()[0]['printed'] is True


def test_update_errors(client):
    client.post('/api/orders', json=ORDER)
    missing = client.put('/api/orders', json={'status': 'READY'})
    assert missing.status_code == 400
    assert missing.get_json() == {'error': 'Missing ID'}

    assert client.put('/api/orders', json={'id': 99, 'status': 'READY'}).status_code == 404
    assert client.put('/api/orders', json={'id': 'abc'}).status_code == 404
    assert client.put('/api/orders', json={'id': 1, 'status': 'LOST'}).status_code == 400
    assert client.put('/api/orders', json={'id': 1, 'printed': 'yes'}).status_code == 400


def test_unsupported_method(client):
    r = client.delete('/api/orders')
    assert r.status_code == 405
    assert r.get_json() == {'error': 'Method DELETE Not Allowed'}
    assert 'POST' in r.headers['Allow']


def test_storage_failure_returns_500(client, container, monkeypatch):
    def broken_insert(row):
        raise OSError('disk full')

    monkeypatch.setattr(container.orders_repo, 'insert', broken_insert)
    r = client.post('/api/orders', json=ORDER)
    assert r.status_code == 500
    assert r.get_json() == {'error': 'Internal Server Error', 'details': 'disk full'}
