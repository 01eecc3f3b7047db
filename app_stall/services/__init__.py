"""
Servicios de negocio del terminal y del backend.
"""

from app_stall.services.audit_service import AuditService
from app_stall.services.catalog_service import CatalogService
from app_stall.services.cart_service import CartService
from app_stall.services.pricing_service import PricingService, compute_totals
from app_stall.services.settings_service import SettingsService
from app_stall.services.token_service import TokenService
from app_stall.services.ledger_service import LedgerService
from app_stall.services.drawer_service import DrawerService, expected_drawer_cash
from app_stall.services.stats_service import StatsService, summarize
from app_stall.services import receipt_service
from app_stall.services.print_service import PrintService, SpoolPrinter
from app_stall.services.replication_service import ReplicationService
from app_stall.services.orders_service import OrdersService
from app_stall.services.sync_service import SyncService

__all__ = [
    'AuditService',
    'CatalogService',
    'CartService',
    'PricingService',
    'compute_totals',
    'SettingsService',
    'TokenService',
    'LedgerService',
    'DrawerService',
    'expected_drawer_cash',
    'StatsService',
    'summarize',
    'receipt_service',
    'PrintService',
    'SpoolPrinter',
    'ReplicationService',
    'OrdersService',
    'SyncService',
]
