# ==============================================================================
# SERVICIO DE CONFIGURACIÓN DEL PUESTO
# ==============================================================================
# BillSettings y fondo de caja inicial. Solo el rol ADMIN puede modificarlos.
# Ambos se replican completos (SETTINGS_UPDATE / OPENING_CASH_UPDATE).
#
# is_print_hub es propio de CADA dispositivo: al aplicar configuración
# remota se conserva el valor local.
# ==============================================================================

from decimal import Decimal
from typing import Any, Dict

from app_stall.models.entities import BillSettings, UserRole, WorkerAccount
from app_stall.models.money import InvalidMoneyError, to_money
from app_stall.models.replication import namespace_for
from app_stall.repositories.settings_repository import SettingsRepository
from app_stall.services.audit_service import AuditService

EDITABLE_FIELDS = (
    'stall_name',
    'footer_message',
    'tax_rate',
    'worker_accounts',
    'printer_enabled',
    'is_print_hub',
)


class SettingsService:
    """
    Servicio de configuración del puesto.
    """

    def __init__(
        self,
        settings_repo: SettingsRepository,
        audit_service: AuditService = None,
        print_hub: bool = None
    ):
        """
        Args:
            settings_repo: Repositorio de configuración
            audit_service: Servicio de auditoría (opcional)
            print_hub: Si se indica, fuerza is_print_hub de este terminal
        """
        self.settings_repo = settings_repo
        self.audit_service = audit_service
        self.publisher = None
        if print_hub is not None:
            data = self.settings_repo.get_bill_settings()
            data['is_print_hub'] = bool(print_hub)
            self.settings_repo.set_bill_settings(data)

    def set_publisher(self, publisher) -> None:
        self.publisher = publisher

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_settings(self) -> BillSettings:
        return BillSettings.from_dict(self.settings_repo.get_bill_settings())

    def get_opening_cash(self) -> Decimal:
        return to_money(self.settings_repo.get_opening_cash())

    def namespace(self) -> str:
        """Namespace de réplica de este puesto."""
        return namespace_for(self.get_settings().stall_name)

    # =========================================================================
    # MUTACIONES (solo ADMIN)
    # =========================================================================

    def update_settings(self, data: Dict[str, Any], role: str, user: str = '') -> Dict[str, Any]:
        """
        Actualiza campos de BillSettings.

        Args:
            data: Campos a cambiar (los no editables se ignoran)
            role: Rol de quien pide el cambio
            user: Nombre para auditoría

        Returns:
            Dict con ok/error y settings
        """
        if role != UserRole.ADMIN.value:
            return {'ok': False, 'error': 'Solo un administrador puede cambiar la configuración'}

        current = self.get_settings()
        changes = {k: data[k] for k in EDITABLE_FIELDS if k in data}

        if 'stall_name' in changes:
            name = (changes['stall_name'] or '').strip()
            if not name:
                return {'ok': False, 'error': 'El nombre del puesto es obligatorio'}
            current.stall_name = name
        if 'footer_message' in changes:
            current.footer_message = changes['footer_message'] or ''
        if 'tax_rate' in changes:
            try:
                current.tax_rate = to_money(changes['tax_rate'])
            except InvalidMoneyError:
                return {'ok': False, 'error': 'Tasa de impuesto inválida'}
        if 'worker_accounts' in changes:
            workers = []
            for w in changes['worker_accounts'] or []:
                name = (w.get('name') or '').strip()
                email = (w.get('email') or '').strip().lower()
                if not name or not email:
                    return {'ok': False, 'error': 'Cada trabajador necesita nombre y email'}
                workers.append(WorkerAccount(name=name, email=email))
            current.worker_accounts = workers
        if 'printer_enabled' in changes:
            current.printer_enabled = bool(changes['printer_enabled'])
        if 'is_print_hub' in changes:
            current.is_print_hub = bool(changes['is_print_hub'])

        self.settings_repo.set_bill_settings(current.to_dict())

        if self.audit_service:
            self.audit_service.log_settings_change(user, changes)
        if self.publisher:
            self.publisher.publish_settings(current.to_dict())
        return {'ok': True, 'settings': current}

    def set_opening_cash(self, amount: Any, role: str, user: str = '') -> Dict[str, Any]:
        """Fija el fondo de caja inicial del turno."""
        if role != UserRole.ADMIN.value:
            return {'ok': False, 'error': 'Solo un administrador puede fijar el fondo de caja'}
        try:
            new_amount = to_money(amount)
        except InvalidMoneyError:
            return {'ok': False, 'error': 'Monto inválido'}

        old_amount = self.get_opening_cash()
        self.settings_repo.set_opening_cash(str(new_amount))

        if self.audit_service:
            self.audit_service.log_opening_cash(user, old_amount, new_amount)
        if self.publisher:
            self.publisher.publish_opening_cash(str(new_amount))
        return {'ok': True, 'opening_cash': new_amount}

    # =========================================================================
    # RÉPLICA
    # =========================================================================

    def replace_settings(self, data: Dict[str, Any]) -> None:
        """Reemplazo completo desde otro terminal (conserva is_print_hub local)."""
        incoming = BillSettings.from_dict(data)
        incoming.is_print_hub = self.get_settings().is_print_hub
        self.settings_repo.set_bill_settings(incoming.to_dict())

    def replace_opening_cash(self, amount: Any) -> None:
        self.settings_repo.set_opening_cash(str(to_money(amount)))
