# ==============================================================================
# REPOSITORIO DE CONFIGURACIÓN DEL PUESTO
# ==============================================================================
# Encapsula el acceso a settings.json: BillSettings + fondo de caja inicial.
# ==============================================================================

import copy
from typing import Any, Dict

from app_stall.constants import DEFAULT_OPENING_CASH, DEFAULT_SETTINGS
from app_stall.repositories.base import DictRepository


class SettingsRepository(DictRepository):
    """
    Formato de settings.json:
    {
        "bill_settings": {"stall_name": "KC HIGH", "tax_rate": "5", ...},
        "opening_cash": "1000"
    }
    """

    FILENAME = 'settings.json'

    def _empty_data(self) -> Dict[str, Any]:
        return {
            'bill_settings': copy.deepcopy(DEFAULT_SETTINGS),
            'opening_cash': DEFAULT_OPENING_CASH,
        }

    def get_bill_settings(self) -> Dict[str, Any]:
        return self.get('bill_settings') or copy.deepcopy(DEFAULT_SETTINGS)

    def set_bill_settings(self, settings: Dict[str, Any]) -> None:
        self.set('bill_settings', settings)

    def get_opening_cash(self) -> str:
        value = self.get('opening_cash')
        return DEFAULT_OPENING_CASH if value is None else value

    def set_opening_cash(self, amount: str) -> None:
        self.set('opening_cash', amount)
