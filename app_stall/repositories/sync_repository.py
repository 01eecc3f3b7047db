# ==============================================================================
# REPOSITORIO DEL RELAY DE SINCRONIZACIÓN
# ==============================================================================
# Guarda, por namespace (puesto), el log de mensajes con cursor secuencial y
# el snapshot de estado completo para que un terminal pueda resincronizar.
# ==============================================================================

import copy
from typing import Any, Callable, Dict

from app_stall.models.replication import empty_snapshot
from app_stall.repositories.base import DictRepository


class SyncRepository(DictRepository):
    """
    Formato de sync.json:
    {
        "kc-high": {
            "seq": 42,
            "messages": [{"seq": 41, "type": "SALES_UPDATE", ...}, ...],
            "state": {"sales": {...}, "inventory": [...], "settings": {...},
                      "opening_cash": "1000"}
        }
    }
    """

    FILENAME = 'sync.json'

    # Mensajes retenidos por namespace; el resto se recupera con el snapshot
    MAX_MESSAGES = 500

    @staticmethod
    def _empty_channel() -> Dict[str, Any]:
        return {'seq': 0, 'messages': [], 'state': empty_snapshot()}

    def get_channel(self, namespace: str) -> Dict[str, Any]:
        return self.get(namespace) or self._empty_channel()

    def update_channel(self, namespace: str, fn: Callable[[Dict[str, Any]], Any]) -> Any:
        """
        Modifica el canal de un namespace de forma atómica.

        Args:
            fn: Recibe el canal (dict) y lo modifica in-place
        """
        def _update(data):
            channel = data.setdefault(namespace, self._empty_channel())
            result = fn(channel)
            del channel['messages'][:-self.MAX_MESSAGES]
            return copy.deepcopy(result)
        return self.mutate(_update)
