import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app_stall.app_container import AppContainer
from app_stall.config import Config
from app_stall.main import create_app
from app_stall.models import CardPayment, CashPayment, CartItem, OrderStatus, SaleRecord, UpiPayment
from app_stall.transports import LocalBroadcastHub


BASE_TS = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_config(tmp_path, terminal_id, **kwargs):
    kwargs.setdefault('sync_interval', 0)
    return Config(
        data_dir=str(tmp_path / terminal_id),
        terminal_id=terminal_id,
        secret_key='test-secret',
        **kwargs
    )


@pytest.fixture
def container(tmp_path):
    c = AppContainer(make_config(tmp_path, 'T1')).start()
    yield c
    c.close()


@pytest.fixture
def hub():
    return LocalBroadcastHub()


@pytest.fixture
def terminals(tmp_path, hub):
    t1 = AppContainer(make_config(tmp_path, 'T1'), hub=hub).start()
    t2 = AppContainer(make_config(tmp_path, 'T2'), hub=hub).start()
    yield t1, t2
    t1.close()
    t2.close()


@pytest.fixture
def client(container):
    app = create_app(container)
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c


@pytest.fixture
def add_items():
    def _add(c, *item_ids):
        for item_id in item_ids:
            result = c.cart_service.add_item(item_id)
            assert result['ok'], result
    return _add


@pytest.fixture
def make_record():
    """Fabrica SaleRecord sueltos para probar funciones puras."""
    counter = {'n': 0}

    def _make(token=1, total='100', method='CARD', status=OrderStatus.PENDING,
              ts=None, received=None, change=None, settled_by='Ravi', items=None, **kwargs):
        counter['n'] += 1
        total = Decimal(total)
        if method == 'CASH':
            payment = CashPayment(
                received=Decimal(received) if received is not None else total,
                change=Decimal(change) if change is not None else Decimal('0'),
            )
        elif method == 'UPI':
            payment = UpiPayment()
        else:
            payment = CardPayment()
        ts = ts or BASE_TS + timedelta(seconds=counter['n'])
        return SaleRecord(
            id=kwargs.pop('id', f"BILL-TEST{counter['n']:08d}"),
            token_number=token,
            timestamp=ts.isoformat(),
            items=items if items is not None else [
                CartItem(id='1', name='Classic Burger', price=total, category='Food')
            ],
            total=total,
            payment=payment,
            status=status,
            settled_by=settled_by,
            **kwargs
        )
    return _make
