# ==============================================================================
# SERVICIO DE IMPRESIÓN (PRINT HUB)
# ==============================================================================
# La impresora física pertenece a UN terminal: el Print Hub (is_print_hub).
# Los demás terminales nunca tocan el hardware: envían REMOTE_PRINT_REQUEST
# y el hub imprime por ellos. Es un canal "dispara y olvida", fuera del
# contrato de consistencia.
#
# La salida física es un "sink" intercambiable. El sink por defecto
# (SpoolPrinter) deja cada copia como archivo .txt en el directorio spool.
# ==============================================================================

import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from app_stall.models.entities import SaleRecord
from app_stall.services import receipt_service

logger = logging.getLogger(__name__)

# Copias que se imprimen al confirmar una venta
COMMIT_COPIES = (receipt_service.COPY_KITCHEN, receipt_service.COPY_CUSTOMER)


class SpoolPrinter:
    """Sink de impresión que escribe cada trabajo en <spool_dir>/<nombre>.txt"""

    def __init__(self, spool_dir: str):
        self.spool_dir = spool_dir

    def print_text(self, job_name: str, text: str) -> str:
        os.makedirs(self.spool_dir, exist_ok=True)
        path = os.path.join(self.spool_dir, f"{job_name}.txt")
        counter = 2
        while os.path.exists(path):
            path = os.path.join(self.spool_dir, f"{job_name}-{counter}.txt")
            counter += 1
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path


class PrintService:
    """
    Servicio de impresión.

    Responsabilidades:
    - Imprimir localmente si este terminal es el Print Hub
    - Reenviar la solicitud al hub en caso contrario
    - Atender solicitudes remotas (solo en el hub)
    """

    def __init__(self, settings_service, printer=None):
        self.settings_service = settings_service
        self.printer = printer
        self.publisher = None

    def set_publisher(self, publisher) -> None:
        self.publisher = publisher

    @property
    def is_hub(self) -> bool:
        return self.settings_service.get_settings().is_print_hub

    def _print_copies(self, record: SaleRecord, copies: Iterable[str]) -> List[str]:
        settings = self.settings_service.get_settings()
        paths = []
        for copy in copies:
            text = receipt_service.render(record, settings, copy)
            paths.append(self.printer.print_text(f"{record.id}-{copy}", text))
        return paths

    def request_print(self, record: SaleRecord, copies: Iterable[str] = COMMIT_COPIES) -> Dict[str, Any]:
        """
        Solicita la impresión de una venta.

        Returns:
            Dict con ok, mode ('disabled' | 'local' | 'remote' | 'none')
            y paths si se imprimió localmente
        """
        copies = list(copies)
        settings = self.settings_service.get_settings()
        if not settings.printer_enabled:
            return {'ok': True, 'mode': 'disabled'}

        if settings.is_print_hub and self.printer:
            try:
                paths = self._print_copies(record, copies)
            except OSError as e:
                logger.warning("Fallo de impresora al imprimir %s: %s", record.id, e)
                return {'ok': False, 'mode': 'local', 'error': f'Fallo de impresora: {e}'}
            return {'ok': True, 'mode': 'local', 'paths': paths}

        if self.publisher:
            self.publisher.publish_print_request({'sale': record.to_dict(), 'copies': copies})
            return {'ok': True, 'mode': 'remote'}

        logger.warning("Sin Print Hub ni réplica: no se imprimió %s", record.id)
        return {'ok': False, 'mode': 'none', 'error': 'No hay impresora disponible'}

    def reprint(self, record: SaleRecord) -> Dict[str, Any]:
        """Reimpresión (copia duplicada) desde el historial."""
        return self.request_print(record, [receipt_service.COPY_DUPLICATE])

    def handle_remote_print(self, payload: Any) -> Optional[List[str]]:
        """
        Atiende un REMOTE_PRINT_REQUEST. Solo el hub imprime; los demás
        terminales lo ignoran.

        Returns:
            Rutas impresas, o None si no se atendió
        """
        if not self.is_hub or not self.printer:
            return None
        if not isinstance(payload, dict) or not isinstance(payload.get('sale'), dict):
            logger.warning("Solicitud de impresión remota inválida descartada")
            return None

        record = SaleRecord.from_dict(payload['sale'])
        copies = [c for c in payload.get('copies') or COMMIT_COPIES if c in receipt_service.COPY_TYPES]
        try:
            return self._print_copies(record, copies)
        except OSError as e:
            logger.warning("Fallo de impresora en solicitud remota %s: %s", record.id, e)
            return None
