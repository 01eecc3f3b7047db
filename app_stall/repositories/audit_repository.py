# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula el acceso a audit.json (más recientes primero).
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List

from app_stall.repositories.base import ListRepository


class AuditRepository(ListRepository):
    """
    Formato de audit.json:
    [
        {
            "type": "VENTA",
            "user": "Ravi",
            "message": "Token #8 (BILL-...) cobrado por Ravi - ...",
            "timestamp": "2026-10-19 10:00:00",
            "related_id": "BILL-...",
            "terminal_id": "T-1A2B3C",
            "details": {...}
        }
    ]
    """

    FILENAME = 'audit.json'

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    def load(self) -> List[Dict[str, Any]]:
        return self.get_all()

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None,
        terminal_id: str = ''
    ) -> Dict[str, Any]:
        """Registra un evento (insertado al inicio)."""
        entry = {
            'type': log_type,
            'user': user or 'sistema',
            'message': message,
            'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'related_id': related_id,
            'terminal_id': terminal_id,
            'details': details or {},
        }

        def _insert(data):
            data.insert(0, entry)
            del data[self.MAX_LOGS:]
        self.mutate(_insert)
        return entry

