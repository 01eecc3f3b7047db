# ==============================================================================
# TRANSPORTE DE RÉPLICA - Interfaz abstracta
# ==============================================================================
# El servicio de réplica solo conoce esta interfaz. Cada adaptador decide
# cómo viajan los mensajes (broadcast en proceso, polling HTTP, ...).
# ==============================================================================

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from app_stall.models.replication import MessageType, ReplicationMessage

MessageHandler = Callable[[ReplicationMessage], None]


class ReplicationTransport(ABC):
    """
    Contrato mínimo de un transporte:
    - publish(): envía un mensaje a los demás terminales del namespace
    - on_message(): registra el handler de mensajes entrantes
    - resync(): snapshot completo del namespace, o None si no hay
    - close(): libera recursos
    """

    def __init__(self, namespace: str, terminal_id: str):
        self.namespace = namespace
        self.terminal_id = terminal_id
        self._handler: Optional[MessageHandler] = None

    def on_message(self, handler: MessageHandler) -> None:
        self._handler = handler

    def _build(self, msg_type: MessageType, payload: Any) -> ReplicationMessage:
        return ReplicationMessage(
            type=MessageType(msg_type),
            payload=payload,
            origin=self.terminal_id,
            namespace=self.namespace,
        )

    def _deliver(self, message: ReplicationMessage) -> None:
        """Entrega un mensaje entrante al handler, salvo los propios."""
        if self._handler and message.origin != self.terminal_id:
            self._handler(message)

    @abstractmethod
    def publish(self, msg_type: MessageType, payload: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def resync(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def close(self) -> None:
        self._handler = None
