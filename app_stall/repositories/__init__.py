# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Toda la persistencia local del terminal (JSON) vive aquí.
#
# ESTRUCTURA:
# ├── interfaces.py          → Protocolos (contratos)
# ├── base.py                → Clases base JSON (DictRepository, ListRepository)
# ├── menu_repository.py     → menu.json
# ├── sales_repository.py    → sales.json (ledger local)
# ├── settings_repository.py → settings.json (BillSettings + fondo de caja)
# ├── audit_repository.py    → audit.json
# ├── orders_repository.py   → orders.json (backend REST de pedidos)
# └── sync_repository.py     → sync.json (relay de réplica)
# ==============================================================================

from .interfaces import (
    IMenuRepository,
    ISalesRepository,
    ISettingsRepository,
    IAuditRepository,
    IOrdersRepository,
    ISyncRepository,
)

from .base import BaseRepository, DictRepository, ListRepository
from .menu_repository import MenuRepository
from .sales_repository import SalesRepository
from .settings_repository import SettingsRepository
from .audit_repository import AuditRepository
from .orders_repository import OrdersRepository
from .sync_repository import SyncRepository

__all__ = [
    'IMenuRepository',
    'ISalesRepository',
    'ISettingsRepository',
    'IAuditRepository',
    'IOrdersRepository',
    'ISyncRepository',
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'MenuRepository',
    'SalesRepository',
    'SettingsRepository',
    'AuditRepository',
    'OrdersRepository',
    'SyncRepository',
]
