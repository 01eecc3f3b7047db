# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio (dataclasses), aritmética de dinero y el contrato de
# mensajes de replicación. Independiente de la persistencia y del transporte.
# ==============================================================================

from .entities import (
    # Enumeraciones
    UserRole,
    PaymentMethod,
    OrderStatus,
    DiscountType,
    AuditType,
    TERMINAL_STATUSES,
    ALLOWED_TRANSITIONS,
    can_transition,

    # Catálogo y carrito
    MenuItem,
    CartItem,
    Cart,
    Discount,

    # Pagos
    CashPayment,
    CardPayment,
    UpiPayment,
    Payment,

    # Ventas y configuración
    SaleRecord,
    WorkerAccount,
    BillSettings,
    Totals,

    # Fechas
    utc_now_iso,
    parse_ts,
)
from .money import InvalidMoneyError, to_money, format_money
from .replication import MessageType, ReplicationMessage, namespace_for

__all__ = [
    'UserRole',
    'PaymentMethod',
    'OrderStatus',
    'DiscountType',
    'AuditType',
    'TERMINAL_STATUSES',
    'ALLOWED_TRANSITIONS',
    'can_transition',
    'MenuItem',
    'CartItem',
    'Cart',
    'Discount',
    'CashPayment',
    'CardPayment',
    'UpiPayment',
    'Payment',
    'SaleRecord',
    'WorkerAccount',
    'BillSettings',
    'Totals',
    'utc_now_iso',
    'parse_ts',
    'InvalidMoneyError',
    'to_money',
    'format_money',
    'MessageType',
    'ReplicationMessage',
    'namespace_for',
]
