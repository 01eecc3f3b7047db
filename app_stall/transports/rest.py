# ==============================================================================
# TRANSPORTE REST (POLLING CONTRA EL RELAY)
# ==============================================================================
# Terminales en equipos distintos replican a través del relay HTTP:
#
#   flush_outbox() -> POST /api/sync/<ns>/messages
#   poll()         -> GET  /api/sync/<ns>/messages?since=<cursor>
#   resync()       -> GET  /api/sync/<ns>/state
#
# publish() solo encola: el hilo de polling envía la bandeja de salida (al
# despertar por un publish o cada `interval` segundos). Si el relay no
# responde, los mensajes quedan en la bandeja y se reenvían en el siguiente
# poll. Sin hilo (interval 0) el envío ocurre al llamar poll() o flush_outbox().
# ==============================================================================

import logging
import threading
from typing import Any, Dict, List, Optional

import requests

from app_stall.models.replication import MessageType, ReplicationMessage
from app_stall.transports.base import ReplicationTransport

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5


class RestPollingTransport(ReplicationTransport):

    def __init__(
        self,
        base_url: str,
        namespace: str,
        terminal_id: str,
        session=None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        super().__init__(namespace, terminal_id)
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.cursor = 0
        self.needs_resync = False
        self._outbox: List[ReplicationMessage] = []
        self._lock = threading.RLock()
        self._send_lock = threading.Lock()
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # =========================================================================
    # HTTP
    # =========================================================================

    def _url(self, suffix: str) -> str:
        return f"{self.base_url}/api/sync/{self.namespace}/{suffix}"

    def _send(self, message: ReplicationMessage) -> None:
        resp = self.session.post(self._url('messages'), json=message.to_dict(), timeout=self.timeout)
        resp.raise_for_status()

    @property
    def outbox_size(self) -> int:
        with self._lock:
            return len(self._outbox)

    # =========================================================================
    # INTERFAZ DE TRANSPORTE
    # =========================================================================

    def publish(self, msg_type: MessageType, payload: Any) -> None:
        """Encola el mensaje y despierta al hilo de envío. No toca la red."""
        message = self._build(msg_type, payload)
        with self._lock:
            self._outbox.append(message)
        self._wake.set()

    def flush_outbox(self) -> int:
        """
        Reenvía los mensajes pendientes en orden. Se detiene en el primer fallo.
        El envío ocurre fuera de _lock: publish() nunca espera a la red.

        Returns:
            Cantidad de mensajes enviados
        """
        sent = 0
        with self._send_lock:
            while True:
                with self._lock:
                    if not self._outbox:
                        break
                    message = self._outbox[0]
                try:
                    self._send(message)
                except requests.RequestException as e:
                    logger.warning("Relay no disponible (%d pendientes): %s", self.outbox_size, e)
                    break
                with self._lock:
                    self._outbox.pop(0)
                sent += 1
        return sent

    def poll(self) -> int:
        """
        Trae y entrega los mensajes nuevos del relay.

        Returns:
            Cantidad de mensajes entregados al handler
        """
        self.flush_outbox()
        try:
            resp = self.session.get(
                self._url('messages'), params={'since': self.cursor}, timeout=self.timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Poll al relay fallido: %s", e)
            return 0

        if data.get('truncated'):
            # El relay ya descartó mensajes que no vimos
            self.needs_resync = True
            logger.warning("Cursor %s fuera del log del relay, se requiere resync", self.cursor)

        delivered = 0
        for raw in data.get('messages', []):
            try:
                message = ReplicationMessage.from_dict(raw)
            except (KeyError, ValueError) as e:
                logger.warning("Mensaje del relay descartado: %s", e)
                continue
            if message.origin != self.terminal_id:
                delivered += 1
            self._deliver(message)
        self.cursor = max(self.cursor, int(data.get('cursor', self.cursor)))
        return delivered

    def resync(self) -> Optional[Dict[str, Any]]:
        self.flush_outbox()
        try:
            resp = self.session.get(self._url('state'), timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Resync con el relay fallido: %s", e)
            return None
        self.cursor = max(self.cursor, int(data.get('cursor', 0)))
        self.needs_resync = False
        return data.get('state')

    # =========================================================================
    # HILO DE POLLING
    # =========================================================================

    def start(self, interval: float = 2.0) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()

        def _loop():
            while not self._stop.is_set():
                woken = self._wake.wait(interval)
                if self._stop.is_set():
                    break
                if woken:
                    self._wake.clear()
                self.poll()

        self._thread = threading.Thread(target=_loop, name=f"sync-{self.terminal_id}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self._wake.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    def close(self) -> None:
        self.stop()
        self.session.close()
        super().close()
