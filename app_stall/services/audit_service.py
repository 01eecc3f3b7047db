# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza el registro de eventos con mensajes legibles para el dueño.
# REGLA DE ORO: todo cobro y toda anulación quedan registrados.
# ==============================================================================

from decimal import Decimal
from typing import Any, Dict, List

from app_stall.models.entities import AuditType
from app_stall.models.money import format_money
from app_stall.repositories.audit_repository import AuditRepository


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Categorías: VENTA, ESTADO, MENU, CAJA, SISTEMA.
    """

    def __init__(self, audit_repo: AuditRepository, terminal_id: str = ''):
        """
        Args:
            audit_repo: Repositorio de auditoría
            terminal_id: Terminal que registra los eventos
        """
        self.audit_repo = audit_repo
        self.terminal_id = terminal_id

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: AuditType,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        self.audit_repo.log(
            log_type.value, user, message, related_id, details, self.terminal_id
        )

    def log_sale_created(
        self,
        user: str,
        sale_id: str,
        token_number: int,
        total: Decimal,
        payment_method: str,
        items_count: int
    ) -> None:
        message = (
            f"Token #{token_number} ({sale_id}) cobrado por {user} - "
            f"Total: {format_money(total)} - {items_count} items - {payment_method}"
        )
        self.log(
            AuditType.VENTA, user, message, sale_id,
            {'token_number': token_number, 'total': str(total),
             'payment_method': payment_method, 'items_count': items_count}
        )

    def log_status_change(
        self,
        user: str,
        sale_id: str,
        token_number: int,
        old_status: str,
        new_status: str
    ) -> None:
        message = f"Token #{token_number} ({sale_id}): {old_status} → {new_status} por {user}"
        self.log(
            AuditType.ESTADO, user, message, sale_id,
            {'from': old_status, 'to': new_status}
        )

    def log_menu_change(self, user: str, action: str, item_id: str, name: str) -> None:
        message = f"Menú: {action} '{name}' por {user}"
        self.log(AuditType.MENU, user, message, item_id, {'action': action})

    def log_settings_change(self, user: str, changes: Dict[str, Any]) -> None:
        fields = ', '.join(sorted(changes)) or 'sin cambios'
        self.log(AuditType.SISTEMA, user, f"Configuración actualizada ({fields}) por {user}",
                 '', {'fields': sorted(changes)})

    def log_opening_cash(self, user: str, old_amount: Decimal, new_amount: Decimal) -> None:
        message = (
            f"Fondo de caja: {format_money(old_amount)} → {format_money(new_amount)} por {user}"
        )
        self.log(AuditType.CAJA, user, message, '',
                 {'from': str(old_amount), 'to': str(new_amount)})

    def log_resync(self, merged: int, republished: int) -> None:
        message = f"Resincronización: {merged} ventas recibidas, {republished} reenviadas"
        self.log(AuditType.SISTEMA, 'sistema', message, '',
                 {'merged': merged, 'republished': republished})

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_logs(self, log_type: str = None, related_id: str = None) -> List[Dict[str, Any]]:
        """
        Obtiene logs (más recientes primero) con filtros opcionales.
        """
        logs = self.audit_repo.load()
        if log_type:
            logs = [log for log in logs if log.get('type') == log_type]
        if related_id:
            logs = [log for log in logs if log.get('related_id') == related_id]
        return logs
