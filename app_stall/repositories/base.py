# ==============================================================================
# REPOSITORIO BASE - Acceso común a archivos JSON
# ==============================================================================
# Cada terminal guarda su estado local en JSON dentro de STALL_DATA_DIR.
# Escritura atómica (archivo temporal + os.replace) y un RLock global para
# que el hilo de polling de réplica y las peticiones Flask no se pisen.
# ==============================================================================

import copy
import json
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional


class BaseRepository(ABC):
    """
    Clase base abstracta para los repositorios JSON.

    Las subclases definen el nombre del archivo y la estructura vacía.
    """

    # Lock global: todas las escrituras a archivos del proceso pasan por aquí
    _file_lock = threading.RLock()

    FILENAME: str = ''

    def __init__(self, data_dir: str):
        """
        Args:
            data_dir: Carpeta de datos del terminal
        """
        os.makedirs(data_dir, exist_ok=True)
        self.file_path = os.path.join(data_dir, self.FILENAME)
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con los datos iniciales si no existe."""
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura inicial del archivo (dict, list, ...)."""
        pass

    def _read_raw(self) -> Any:
        """
        Lee el JSON completo.
        Un archivo corrupto o borrado se trata como vacío.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """
        Escribe el JSON completo de forma atómica.

        Raises:
            OSError: Si falla la escritura (el temporal se limpia)
        """
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def mutate(self, fn: Callable[[Any], Any]) -> Any:
        """
        Lee, modifica y guarda dentro del mismo lock (read-modify-write).

        Args:
            fn: Recibe los datos actuales y los modifica in-place.
                Su valor de retorno se devuelve al llamador.
        """
        with self._file_lock:
            data = self._read_raw()
            result = fn(data)
            self._write_raw(data)
            return result


class DictRepository(BaseRepository):
    """
    Repositorio de datos guardados como diccionario.

    Ejemplo: settings.json -> {"bill_settings": {...}, "opening_cash": "1000"}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self.get_all().get(key, default))

    def set(self, key: str, value: Any) -> None:
        def _set(data):
            data[key] = value
        self.mutate(_set)

    def save_all(self, data: Dict[str, Any]) -> None:
        self._write_raw(data)


class ListRepository(BaseRepository):
    """
    Repositorio de datos guardados como lista de registros con clave.

    Ejemplo: sales.json -> [{"id": "BILL-...", ...}, {...}]
    """

    KEY_FIELD = 'id'

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        data = self._read_raw()
        return data if isinstance(data, list) else []

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        self._write_raw(data)

    def append(self, record: Dict[str, Any]) -> None:
        """Agrega un registro al final (orden de confirmación)."""
        def _append(data):
            data.append(record)
        self.mutate(_append)

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """Primer registro cuyo campo coincide, o None."""
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if r.get(field) == value]

    def get_by_key(self, key: Any) -> Optional[Dict[str, Any]]:
        return self.find_by(self.KEY_FIELD, key)

    def update_where(self, field: str, value: Any, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Actualiza el primer registro que coincide.

        Returns:
            Registro actualizado o None si no existe
        """
        def _update(data):
            for record in data:
                if record.get(field) == value:
                    record.update(updates)
                    return copy.deepcopy(record)
            return None
        return self.mutate(_update)

    def delete_where(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """Elimina el primer registro que coincide y lo retorna."""
        def _delete(data):
            for i, record in enumerate(data):
                if record.get(field) == value:
                    return data.pop(i)
            return None
        return self.mutate(_delete)
