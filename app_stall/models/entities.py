# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio del puesto de comida.
# Diseñadas para ser independientes del mecanismo de persistencia y del
# transporte de replicación: todo se serializa con to_dict()/from_dict().
# ==============================================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from app_stall.models.money import (
    ZERO,
    money_or_none,
    money_str,
    sum_money,
    to_money,
)


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario del puesto."""
    ADMIN = "ADMIN"
    WORKER = "WORKER"


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"


class OrderStatus(str, Enum):
    """Estados de un token en la cola de cocina."""
    PENDING = "PENDING"  # Pagado, en preparación
    READY = "READY"      # Listo para entregar
    SERVED = "SERVED"    # Entregado al cliente
    VOIDED = "VOIDED"    # Anulado (no cuenta en reportes ni caja)


class DiscountType(str, Enum):
    """Tipos de descuento aplicables al carrito."""
    PERCENT = "percent"
    FIXED = "fixed"


class AuditType(str, Enum):
    """Tipos de eventos de auditoría."""
    VENTA = "VENTA"
    ESTADO = "ESTADO"
    MENU = "MENU"
    CAJA = "CAJA"
    SISTEMA = "SISTEMA"


# Estados finales: no admiten más transiciones
TERMINAL_STATUSES = frozenset([OrderStatus.SERVED, OrderStatus.VOIDED])

# Tabla de transiciones permitidas (origen -> destinos)
ALLOWED_TRANSITIONS: Dict[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset([OrderStatus.READY, OrderStatus.SERVED, OrderStatus.VOIDED]),
    OrderStatus.READY: frozenset([OrderStatus.PENDING, OrderStatus.SERVED, OrderStatus.VOIDED]),
    OrderStatus.SERVED: frozenset(),
    OrderStatus.VOIDED: frozenset(),
}


def can_transition(old_status: OrderStatus, new_status: OrderStatus) -> bool:
    """Indica si la tabla de estados permite pasar de old_status a new_status."""
    return new_status in ALLOWED_TRANSITIONS.get(old_status, frozenset())


# ==============================================================================
# FECHAS
# ==============================================================================

def utc_now_iso() -> str:
    """Timestamp actual en ISO-8601 UTC (formato usado en todos los registros)."""
    return datetime.now(timezone.utc).isoformat()


def parse_ts(value: Any) -> Optional[datetime]:
    """
    Parsea un timestamp a datetime con zona horaria.

    Acepta ISO-8601 (con o sin 'Z') y epoch en milisegundos, que es el
    formato que usaban los terminales antiguos.
    Retorna None si no puede parsear.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    try:
        dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _normalize_ts(value: Any) -> str:
    dt = parse_ts(value)
    return dt.isoformat() if dt else utc_now_iso()


# ==============================================================================
# CATÁLOGO
# ==============================================================================

@dataclass
class MenuItem:
    """
    Producto vendible del menú.

    Attributes:
        id: Identificador estable y único
        name: Nombre visible
        price: Precio (no negativo)
        category: Categoría libre (Food, Drinks, ...)
        is_available: Disponible para vender (interruptor manual, no stock)
        description: Descripción opcional
    """
    id: str
    name: str
    price: Decimal
    category: str
    is_available: bool = True
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'id': self.id,
            'name': self.name,
            'price': money_str(self.price),
            'category': self.category,
            'is_available': self.is_available,
        }
        if self.description is not None:
            d['description'] = self.description
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MenuItem':
        """Crea instancia desde diccionario."""
        available = data.get('is_available', data.get('isAvailable'))
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            price=to_money(data.get('price', 0)),
            category=data.get('category', ''),
            # Los ítems antiguos no tenían la bandera: se consideran disponibles
            is_available=available is not False,
            description=data.get('description')
        )


# ==============================================================================
# CARRITO
# ==============================================================================

@dataclass
class CartItem:
    """
    Copia congelada de un MenuItem dentro de un carrito o de una venta.
    No vuelve a referenciar el catálogo: si el ítem se borra o cambia de
    precio, las ventas históricas conservan estos valores.
    """
    id: str
    name: str
    price: Decimal
    category: str
    quantity: int = 1
    instructions: str = ''
    description: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        """Precio × cantidad."""
        return self.price * self.quantity

    @classmethod
    def from_menu_item(cls, item: MenuItem) -> 'CartItem':
        return cls(
            id=item.id,
            name=item.name,
            price=item.price,
            category=item.category,
            quantity=1,
            instructions='',
            description=item.description
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'name': self.name,
            'price': money_str(self.price),
            'category': self.category,
            'quantity': self.quantity,
            'instructions': self.instructions,
        }
        if self.description is not None:
            d['description'] = self.description
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            price=to_money(data.get('price', 0)),
            category=data.get('category', ''),
            quantity=max(1, int(data.get('quantity', 1))),
            instructions=data.get('instructions') or '',
            description=data.get('description')
        )


@dataclass
class Cart:
    """
    Pedido en construcción de UN terminal. Nunca se persiste ni se replica.
    Invariante: toda línea tiene quantity >= 1.
    """
    items: List[CartItem] = field(default_factory=list)

    def find(self, item_id: str) -> Optional[CartItem]:
        for line in self.items:
            if line.id == item_id:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        """Unidades totales (suma de cantidades)."""
        return sum(line.quantity for line in self.items)

    def clear(self) -> None:
        self.items = []

    def snapshot(self) -> List[CartItem]:
        """Copia independiente de las líneas (para congelar en la venta)."""
        return [CartItem.from_dict(line.to_dict()) for line in self.items]


@dataclass
class Discount:
    """Descuento aplicado al carrito al cobrar."""
    type: DiscountType = DiscountType.PERCENT
    value: Decimal = ZERO

    @classmethod
    def from_input(cls, discount_type: Any = None, value: Any = None) -> 'Discount':
        """
        Construye el descuento desde datos de formulario/API.
        Valores vacíos o negativos se tratan como 0.
        """
        try:
            dtype = DiscountType(discount_type) if discount_type else DiscountType.PERCENT
        except ValueError:
            raise ValueError(f'Tipo de descuento inválido: {discount_type!r}')
        if value is None or value == '':
            return cls(dtype, ZERO)
        amount = to_money(value, allow_negative=True)
        return cls(dtype, max(ZERO, amount))


# ==============================================================================
# PAGOS - Variante etiquetada (no campos opcionales sueltos)
# ==============================================================================

@dataclass(frozen=True)
class CashPayment:
    """Pago en efectivo: siempre trae lo recibido y el vuelto."""
    received: Decimal
    change: Decimal
    method: PaymentMethod = PaymentMethod.CASH


@dataclass(frozen=True)
class CardPayment:
    method: PaymentMethod = PaymentMethod.CARD


@dataclass(frozen=True)
class UpiPayment:
    method: PaymentMethod = PaymentMethod.UPI


Payment = Union[CashPayment, CardPayment, UpiPayment]


def payment_to_dict(payment: Payment) -> Dict[str, Any]:
    d = {'payment_method': payment.method.value}
    if isinstance(payment, CashPayment):
        d['cash_received'] = money_str(payment.received)
        d['cash_change'] = money_str(payment.change)
    return d


def payment_from_dict(data: Dict[str, Any], total: Decimal) -> Payment:
    """
    Reconstruye el pago desde un registro serializado.

    Registros antiguos de efectivo pueden no traer cash_received/cash_change:
    se asume pago exacto (recibido = total, vuelto = 0).
    """
    method = PaymentMethod(data.get('payment_method', data.get('paymentMethod', 'CASH')))
    if method == PaymentMethod.CARD:
        return CardPayment()
    if method == PaymentMethod.UPI:
        return UpiPayment()
    received = money_or_none(data.get('cash_received', data.get('cashReceived')))
    change = money_or_none(data.get('cash_change', data.get('cashChange')))
    return CashPayment(
        received=total if received is None else received,
        change=ZERO if change is None else change
    )


# ==============================================================================
# VENTAS (TOKENS)
# ==============================================================================

@dataclass
class SaleRecord:
    """
    Venta confirmada ("token"). Unidad de verdad del ledger.

    Attributes:
        id: Identificador global único (generado en el terminal)
        token_number: Número visible 1..999, NO único
        timestamp: Instante de creación (ISO UTC)
        items: Líneas congeladas
        subtotal / discount_amount / tax_rate / tax_amount / total: montos congelados
        payment: Pago (variante etiquetada)
        status: Estado en la cola de cocina
        settled_by: Nombre del personal que cobró
        terminal_id: Terminal de origen
        revision: Contador de cambios de estado (para el merge)
        updated_at: Último cambio (ISO UTC)
        updated_by: Terminal que hizo el último cambio
    """
    id: str
    token_number: int
    timestamp: str
    items: List[CartItem]
    total: Decimal
    payment: Payment
    status: OrderStatus = OrderStatus.PENDING
    settled_by: str = ''
    terminal_id: str = ''
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    tax_rate: Decimal = ZERO
    tax_amount: Decimal = ZERO
    revision: int = 0
    updated_at: str = ''
    updated_by: str = ''

    @property
    def payment_method(self) -> PaymentMethod:
        return self.payment.method

    @property
    def cash_received(self) -> Optional[Decimal]:
        return self.payment.received if isinstance(self.payment, CashPayment) else None

    @property
    def cash_change(self) -> Optional[Decimal]:
        return self.payment.change if isinstance(self.payment, CashPayment) else None

    @property
    def is_voided(self) -> bool:
        return self.status == OrderStatus.VOIDED

    @property
    def committed_at(self) -> Optional[datetime]:
        return parse_ts(self.timestamp)

    def version_key(self) -> Tuple[int, int, str, str]:
        """
        Clave de versión para resolver escrituras concurrentes.
        Mayor clave gana. Los estados finales siempre ganan a los no finales.
        """
        return (
            1 if self.status in TERMINAL_STATUSES else 0,
            self.revision,
            self.updated_at or self.timestamp,
            self.updated_by or self.terminal_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'token_number': self.token_number,
            'timestamp': self.timestamp,
            'items': [item.to_dict() for item in self.items],
            'subtotal': money_str(self.subtotal),
            'discount_amount': money_str(self.discount_amount),
            'tax_rate': money_str(self.tax_rate),
            'tax_amount': money_str(self.tax_amount),
            'total': money_str(self.total),
            'status': self.status.value,
            'settled_by': self.settled_by,
            'terminal_id': self.terminal_id,
            'revision': self.revision,
            'updated_at': self.updated_at,
            'updated_by': self.updated_by,
        }
        d.update(payment_to_dict(self.payment))
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleRecord':
        """Crea instancia desde diccionario (acepta claves camelCase antiguas)."""
        total = to_money(data.get('total', 0))
        items = [CartItem.from_dict(i) for i in data.get('items', [])]
        subtotal = data.get('subtotal')
        timestamp = _normalize_ts(data.get('timestamp'))
        return cls(
            id=str(data['id']),
            token_number=int(data.get('token_number', data.get('tokenNumber', 0))),
            timestamp=timestamp,
            items=items,
            total=total,
            payment=payment_from_dict(data, total),
            status=OrderStatus(data.get('status', OrderStatus.PENDING.value)),
            settled_by=data.get('settled_by', data.get('settledBy')) or '',
            terminal_id=data.get('terminal_id', data.get('terminalId')) or '',
            subtotal=(to_money(subtotal) if subtotal is not None
                      else sum_money(i.line_total for i in items)),
            discount_amount=to_money(data.get('discount_amount', 0)),
            tax_rate=to_money(data.get('tax_rate', 0)),
            tax_amount=to_money(data.get('tax_amount', 0)),
            revision=int(data.get('revision', 0)),
            updated_at=data.get('updated_at') or timestamp,
            updated_by=data.get('updated_by') or '',
        )


# ==============================================================================
# CONFIGURACIÓN DE BOLETA
# ==============================================================================

@dataclass
class WorkerAccount:
    name: str
    email: str

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'email': self.email}


@dataclass
class BillSettings:
    """
    Configuración del puesto. Una copia lógica por puesto, replicada.

    Attributes:
        stall_name: Nombre del puesto (también define el namespace de réplica)
        footer_message: Mensaje al pie de la boleta
        tax_rate: Porcentaje de impuesto (>= 0)
        worker_accounts: Personal autorizado
        printer_enabled: Imprimir al confirmar venta
        is_print_hub: Este terminal maneja la impresora física (local al dispositivo)
    """
    stall_name: str = 'KC HIGH'
    footer_message: str = 'Thank you for eating with us! Visit again.'
    tax_rate: Decimal = Decimal('5')
    worker_accounts: List[WorkerAccount] = field(default_factory=list)
    printer_enabled: bool = False
    is_print_hub: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stall_name': self.stall_name,
            'footer_message': self.footer_message,
            'tax_rate': money_str(self.tax_rate),
            'worker_accounts': [w.to_dict() for w in self.worker_accounts],
            'printer_enabled': self.printer_enabled,
            'is_print_hub': self.is_print_hub,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BillSettings':
        defaults = cls()
        workers = [
            WorkerAccount(name=w.get('name', ''), email=w.get('email', ''))
            for w in data.get('worker_accounts', data.get('workerAccounts')) or []
        ]
        tax_rate = data.get('tax_rate', data.get('taxRate'))
        return cls(
            stall_name=data.get('stall_name', data.get('stallName')) or defaults.stall_name,
            footer_message=data.get('footer_message', data.get('footerMessage', defaults.footer_message)),
            tax_rate=defaults.tax_rate if tax_rate is None else to_money(tax_rate),
            worker_accounts=workers,
            printer_enabled=bool(data.get('printer_enabled', data.get('printerEnabled', False))),
            is_print_hub=bool(data.get('is_print_hub', data.get('isPrintHub', False))),
        )


# ==============================================================================
# TOTALES
# ==============================================================================

@dataclass
class Totals:
    """Resultado del motor de precios (ver pricing_service)."""
    subtotal: Decimal
    discount_amount: Decimal
    taxable_base: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    cash_received: Optional[Decimal] = None
    cash_change: Optional[Decimal] = None
    cash_sufficient: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': money_str(self.subtotal),
            'discount_amount': money_str(self.discount_amount),
            'taxable_base': money_str(self.taxable_base),
            'tax_rate': money_str(self.tax_rate),
            'tax_amount': money_str(self.tax_amount),
            'total': money_str(self.total),
            'cash_received': None if self.cash_received is None else money_str(self.cash_received),
            'cash_change': None if self.cash_change is None else money_str(self.cash_change),
            'cash_sufficient': self.cash_sufficient,
        }
