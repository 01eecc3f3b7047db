# ==============================================================================
# SERVICIO DE LEDGER (VENTAS / TOKENS)
# ==============================================================================
# Colección autoritativa de ventas confirmadas y su máquina de estados.
#
#   (nueva) ──cobro──▶ PENDING ──listo──▶ READY ──entrega──▶ SERVED
#                         │  ◀──recall──    │
#                         └────anular───────┴──▶ VOIDED
#
# SERVED y VOIDED son finales. Las transiciones fuera de la tabla se rechazan.
# Los cambios se aplican primero localmente y luego se replican: la réplica
# nunca bloquea al cajero.
# ==============================================================================

import logging
import uuid
from typing import Any, Dict, List, Optional

from app_stall.models.entities import (
    CashPayment,
    CardPayment,
    Discount,
    OrderStatus,
    PaymentMethod,
    SaleRecord,
    UpiPayment,
    can_transition,
    utc_now_iso,
)
from app_stall.models.money import InvalidMoneyError, format_money, to_money
from app_stall.models.replication import remote_wins
from app_stall.performance_logger import profile_function
from app_stall.repositories.sales_repository import SalesRepository
from app_stall.services.audit_service import AuditService
from app_stall.services.cart_service import CartService
from app_stall.services.pricing_service import PricingService
from app_stall.services.token_service import TokenService

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (OrderStatus.PENDING, OrderStatus.READY)


def new_sale_id() -> str:
    """Id global de venta: BILL- + 12 hex en mayúsculas (uuid4)."""
    return f"BILL-{uuid.uuid4().hex[:12].upper()}"


def _parse_enum(enum_cls, value):
    """Acepta el miembro del enum o su texto (sin distinguir mayúsculas)."""
    if isinstance(value, enum_cls):
        return value
    return enum_cls(str(value or '').upper())


class LedgerService:
    """
    Servicio del ledger de ventas.

    Responsabilidades:
    - Confirmar ventas desde el carrito (ÚNICO punto de creación)
    - Cambios de estado según la tabla de transiciones
    - Merge de ventas recibidas de otros terminales
    - Consultas: historial, cola de cocina, búsqueda por token
    """

    def __init__(
        self,
        sales_repo: SalesRepository,
        cart_service: CartService,
        pricing_service: PricingService,
        token_service: TokenService,
        audit_service: AuditService = None,
        terminal_id: str = ''
    ):
        self.sales_repo = sales_repo
        self.cart_service = cart_service
        self.pricing_service = pricing_service
        self.token_service = token_service
        self.audit_service = audit_service
        self.terminal_id = terminal_id
        self.publisher = None
        self.print_service = None

    def set_publisher(self, publisher) -> None:
        self.publisher = publisher

    def set_print_service(self, print_service) -> None:
        self.print_service = print_service

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_records(self) -> List[SaleRecord]:
        """Todas las ventas en orden local de confirmación (incluye anuladas)."""
        return [SaleRecord.from_dict(d) for d in self.sales_repo.load()]

    def get_sale(self, sale_id: str) -> Optional[SaleRecord]:
        data = self.sales_repo.get_by_id(sale_id)
        return SaleRecord.from_dict(data) if data else None

    def find_by_token(self, token_number: int) -> List[SaleRecord]:
        """Todas las ventas con ese token: el token NO es único."""
        return [SaleRecord.from_dict(d) for d in self.sales_repo.get_by_token(int(token_number))]

    def history(self, query: str = '') -> List[SaleRecord]:
        """
        Historial completo (más recientes primero). Incluye anuladas:
        la vista las marca, los reportes las excluyen.
        """
        records = [SaleRecord.from_dict(d) for d in self.sales_repo.search_sales(query)]
        return sorted(records, key=lambda r: (r.timestamp, r.id), reverse=True)

    def active_orders(self) -> List[SaleRecord]:
        """Cola de cocina: PENDING y READY, los más antiguos primero."""
        records = [r for r in self.list_records() if r.status in ACTIVE_STATUSES]
        return sorted(records, key=lambda r: (r.timestamp, r.id))

    def next_token_preview(self) -> int:
        """Token que recibiría la próxima venta de este terminal."""
        return self.token_service.next_token(self.list_records())

    # =========================================================================
    # CONFIRMACIÓN DE VENTA
    # =========================================================================

    @profile_function(name="Confirmar venta")
    def commit(
        self,
        payment_method: Any,
        settled_by: str,
        cash_received: Any = None,
        discount: Discount = None
    ) -> Dict[str, Any]:
        """
        Convierte el carrito del terminal en una venta PENDING.

        Todas las validaciones ocurren ANTES de tocar el estado.

        Args:
            payment_method: CASH, CARD o UPI
            settled_by: Nombre del personal que cobra
            cash_received: Efectivo entregado (obligatorio si CASH)
            discount: Descuento aplicado (opcional)

        Returns:
            Dict con ok/error, sale y totals
        """
        cart = self.cart_service.cart
        if cart.is_empty:
            return {'ok': False, 'error': 'El carrito está vacío'}

        try:
            method = _parse_enum(PaymentMethod, payment_method)
        except ValueError:
            return {'ok': False, 'error': f'Método de pago inválido: {payment_method!r}'}

        settled_by = (settled_by or '').strip()
        if not settled_by:
            return {'ok': False, 'error': 'Indica quién realiza el cobro'}

        received = None
        if method == PaymentMethod.CASH:
            if cash_received is None or cash_received == '':
                return {'ok': False, 'error': 'Ingresa el efectivo recibido'}
            try:
                received = to_money(cash_received)
            except InvalidMoneyError:
                return {'ok': False, 'error': 'Efectivo recibido inválido'}

        totals = self.pricing_service.quote(cart, discount, method, received)
        if method == PaymentMethod.CASH and not totals.cash_sufficient:
            return {
                'ok': False,
                'error': f'Efectivo insuficiente. Total: {format_money(totals.total)}',
                'totals': totals,
            }

        if method == PaymentMethod.CASH:
            payment = CashPayment(received=received, change=totals.cash_change)
        elif method == PaymentMethod.CARD:
            payment = CardPayment()
        else:
            payment = UpiPayment()

        now = utc_now_iso()
        record = SaleRecord(
            id=new_sale_id(),
            token_number=self.token_service.next_token(self.list_records()),
            timestamp=now,
            items=cart.snapshot(),
            total=totals.total,
            payment=payment,
            status=OrderStatus.PENDING,
            settled_by=settled_by,
            terminal_id=self.terminal_id,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_rate=totals.tax_rate,
            tax_amount=totals.tax_amount,
            revision=0,
            updated_at=now,
            updated_by=self.terminal_id,
        )

        self.sales_repo.create_sale(record.to_dict())
        self.cart_service.clear()

        if self.audit_service:
            self.audit_service.log_sale_created(
                settled_by, record.id, record.token_number, record.total,
                method.value, len(record.items)
            )
        if self.publisher:
            self.publisher.publish_sale(record.to_dict())
        # La venta ya está confirmada: un fallo de impresión solo se reporta
        result = {'ok': True, 'sale': record, 'totals': totals}
        if self.print_service:
            printed = self.print_service.request_print(record)
            if not printed['ok']:
                result['print_error'] = printed.get('error')

        return result

    # =========================================================================
    # ESTADOS
    # =========================================================================

    def update_status(self, sale_id: str, new_status: Any, user: str = '') -> Dict[str, Any]:
        """
        Cambia el estado de una venta, buscándola por id (nunca por token).

        Returns:
            Dict con ok/error, sale, changed y old_status.
            not_found=True si el id no existe.
        """
        try:
            status = _parse_enum(OrderStatus, new_status)
        except ValueError:
            return {'ok': False, 'error': f'Estado inválido: {new_status!r}'}

        outcome: Dict[str, Any] = {}

        # Se evalúa sobre la versión guardada, bajo el lock del repositorio
        def _transition(current):
            if current is None:
                outcome['error'] = {'ok': False, 'error': 'Venta no encontrada', 'not_found': True}
                return None
            record = SaleRecord.from_dict(current)
            outcome['record'] = record
            outcome['old_status'] = record.status
            if record.status == status:
                return None
            if not can_transition(record.status, status):
                outcome['error'] = {
                    'ok': False,
                    'error': f'Transición inválida: {record.status.value} → {status.value}',
                }
                return None
            record.status = status
            record.revision += 1
            record.updated_at = utc_now_iso()
            record.updated_by = self.terminal_id
            return record.to_dict()

        stored = self.sales_repo.update_sale(sale_id, _transition)
        if 'error' in outcome:
            return outcome['error']

        record = outcome['record']
        old_status = outcome['old_status']
        if stored is None:
            return {'ok': True, 'sale': record, 'changed': False, 'old_status': old_status.value}

        if self.audit_service:
            self.audit_service.log_status_change(
                user or self.terminal_id, record.id, record.token_number,
                old_status.value, status.value
            )
        if self.publisher:
            self.publisher.publish_sale(record.to_dict())

        return {'ok': True, 'sale': record, 'changed': True, 'old_status': old_status.value}

    def void(self, sale_id: str, user: str = '', confirm: bool = False) -> Dict[str, Any]:
        """
        Anula una venta. Irreversible: exige confirmación explícita.
        """
        if not confirm:
            return {'ok': False, 'error': 'Confirma la anulación (es irreversible)'}
        return self.update_status(sale_id, OrderStatus.VOIDED, user)

    # =========================================================================
    # RÉPLICA
    # =========================================================================

    def apply_remote(self, data: Dict[str, Any]) -> bool:
        """
        Merge de una venta recibida de otro terminal (upsert por id).
        Aplicar el mismo registro dos veces no cambia nada.

        Returns:
            True si el ledger local cambió
        """
        try:
            incoming = SaleRecord.from_dict(data).to_dict()
        except (KeyError, TypeError, ValueError, InvalidMoneyError) as e:
            logger.warning("Venta remota inválida descartada: %s", e)
            return False

        return self.sales_repo.merge_sale(incoming, remote_wins)

    def export_records(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.list_records()]
