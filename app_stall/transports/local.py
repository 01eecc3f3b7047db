# ==============================================================================
# TRANSPORTE LOCAL (BROADCAST EN PROCESO)
# ==============================================================================
# Equivalente a varias pestañas del mismo equipo: un hub en memoria reparte
# cada mensaje a los demás terminales suscritos al mismo namespace y guarda
# el snapshot compartido (como el almacenamiento local del navegador).
# ==============================================================================

import copy
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional

from app_stall.models.replication import (
    MessageType,
    ReplicationMessage,
    apply_message_to_snapshot,
    empty_snapshot,
)
from app_stall.transports.base import ReplicationTransport


class LocalBroadcastHub:
    """Canal compartido entre transportes locales, por namespace."""

    def __init__(self):
        self._lock = threading.RLock()
        self._subscribers: Dict[str, List['LocalBroadcastTransport']] = defaultdict(list)
        self._snapshots: Dict[str, Dict[str, Any]] = {}

    def subscribe(self, transport: 'LocalBroadcastTransport') -> None:
        with self._lock:
            if transport not in self._subscribers[transport.namespace]:
                self._subscribers[transport.namespace].append(transport)

    def unsubscribe(self, transport: 'LocalBroadcastTransport') -> None:
        with self._lock:
            subscribers = self._subscribers.get(transport.namespace, [])
            if transport in subscribers:
                subscribers.remove(transport)

    def broadcast(self, message: ReplicationMessage) -> None:
        with self._lock:
            snapshot = self._snapshots.setdefault(message.namespace, empty_snapshot())
            apply_message_to_snapshot(snapshot, message)
            targets = list(self._subscribers.get(message.namespace, []))
        # Entrega fuera del lock: un handler puede volver a publicar
        for transport in targets:
            transport._deliver(message)

    def snapshot(self, namespace: str) -> Dict[str, Any]:
        """Estado compartido del namespace (vacío si nadie publicó aún)."""
        with self._lock:
            return copy.deepcopy(self._snapshots.get(namespace) or empty_snapshot())


class LocalBroadcastTransport(ReplicationTransport):

    def __init__(self, hub: LocalBroadcastHub, namespace: str, terminal_id: str):
        super().__init__(namespace, terminal_id)
        self.hub = hub
        self.hub.subscribe(self)

    def publish(self, msg_type: MessageType, payload: Any) -> None:
        # Copia profunda: el receptor no debe compartir objetos con el emisor
        self.hub.broadcast(self._build(msg_type, copy.deepcopy(payload)))

    def resync(self) -> Optional[Dict[str, Any]]:
        return self.hub.snapshot(self.namespace)

    def close(self) -> None:
        self.hub.unsubscribe(self)
        super().close()
