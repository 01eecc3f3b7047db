# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
# Contratos (Protocol) que deben cumplir los repositorios. Los servicios
# dependen de estas interfaces, no de los JSON: en tests se puede inyectar
# cualquier objeto que las cumpla.
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class IMenuRepository(Protocol):
    """Catálogo del puesto."""

    def load(self) -> List[Dict[str, Any]]:
        ...

    def save(self, items: List[Dict[str, Any]]) -> None:
        ...

    def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        ...

    def create_item(self, data: Dict[str, Any]) -> None:
        ...

    def update_item(self, item_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class ISalesRepository(Protocol):
    """Ledger local de ventas."""

    def load(self) -> List[Dict[str, Any]]:
        ...

    def get_by_id(self, sale_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_by_token(self, token_number: int) -> List[Dict[str, Any]]:
        ...

    def create_sale(self, sale_data: Dict[str, Any]) -> str:
        ...

    def update_sale(self, sale_id: str, fn: Callable) -> Optional[Dict[str, Any]]:
        ...

    def merge_sale(self, sale_data: Dict[str, Any], wins: Callable) -> bool:
        ...

    def search_sales(self, query: str = '') -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ISettingsRepository(Protocol):
    """BillSettings y fondo de caja."""

    def get_bill_settings(self) -> Dict[str, Any]:
        ...

    def set_bill_settings(self, settings: Dict[str, Any]) -> None:
        ...

    def get_opening_cash(self) -> str:
        ...

    def set_opening_cash(self, amount: str) -> None:
        ...


@runtime_checkable
class IAuditRepository(Protocol):

    def load(self) -> List[Dict[str, Any]]:
        ...

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None,
        terminal_id: str = ''
    ) -> Dict[str, Any]:
        ...


@runtime_checkable
class IOrdersRepository(Protocol):
    """Tabla de pedidos del backend REST."""

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_row(self, order_id: int, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def list_rows(self) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ISyncRepository(Protocol):
    """Log de mensajes + snapshot por namespace del relay."""

    def get_channel(self, namespace: str) -> Dict[str, Any]:
        ...

    def update_channel(self, namespace: str, fn) -> Any:
        ...
