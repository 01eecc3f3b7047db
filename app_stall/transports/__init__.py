"""
Transportes de réplica entre terminales del mismo puesto.
"""

from app_stall.transports.base import ReplicationTransport
from app_stall.transports.local import LocalBroadcastHub, LocalBroadcastTransport
from app_stall.transports.rest import RestPollingTransport

__all__ = [
    'ReplicationTransport',
    'LocalBroadcastHub',
    'LocalBroadcastTransport',
    'RestPollingTransport',
]
