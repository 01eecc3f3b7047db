# ==============================================================================
# RELAY DE SINCRONIZACIÓN (BACKEND)
# ==============================================================================
# Punto de encuentro para los terminales que replican por HTTP:
# - Cada mensaje publicado recibe un número de secuencia (cursor)
# - El mensaje se pliega al snapshot del namespace para resync()
# - Los terminales leen los mensajes posteriores a su cursor
# ==============================================================================

import logging
from typing import Any, Dict

from app_stall.models.replication import ReplicationMessage, apply_message_to_snapshot
from app_stall.repositories.sync_repository import SyncRepository

logger = logging.getLogger(__name__)


class SyncService:

    def __init__(self, sync_repo: SyncRepository):
        self.sync_repo = sync_repo

    def publish(self, namespace: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Guarda un mensaje en el log del namespace.

        Returns:
            Dict con ok y seq, o error si el mensaje es inválido
        """
        try:
            message = ReplicationMessage.from_dict(data or {})
        except (KeyError, TypeError, ValueError) as e:
            return {'ok': False, 'error': f'Mensaje inválido: {e}'}
        message.namespace = namespace

        def _store(channel):
            channel['seq'] += 1
            entry = message.to_dict()
            entry['seq'] = channel['seq']
            channel['messages'].append(entry)
            apply_message_to_snapshot(channel['state'], message)
            return channel['seq']

        seq = self.sync_repo.update_channel(namespace, _store)
        logger.debug("Relay %s: %s seq=%s", namespace, message.type.value, seq)
        return {'ok': True, 'seq': seq}

    def messages_since(self, namespace: str, since: int = 0) -> Dict[str, Any]:
        """
        Mensajes con seq > since.

        Returns:
            {'messages': [...], 'cursor': último seq del canal,
             'truncated': True si el log ya no contiene todo lo pedido}
        """
        channel = self.sync_repo.get_channel(namespace)
        messages = [m for m in channel['messages'] if m.get('seq', 0) > since]
        oldest = channel['messages'][0]['seq'] if channel['messages'] else channel['seq'] + 1
        return {
            'messages': messages,
            'cursor': channel['seq'],
            'truncated': since + 1 < oldest and since < channel['seq'],
        }

    def snapshot(self, namespace: str) -> Dict[str, Any]:
        """Estado completo del namespace (para resync)."""
        channel = self.sync_repo.get_channel(namespace)
        return {'state': channel['state'], 'cursor': channel['seq']}
