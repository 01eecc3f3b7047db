# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# Toda la configuración del terminal se lee del entorno al arrancar.
#
#   STALL_SECRET_KEY     Clave de sesión Flask (OBLIGATORIA en producción)
#   STALL_PRODUCTION     1 = modo producción
#   STALL_DATA_DIR       Carpeta de los JSON (por defecto ./data)
#   STALL_TERMINAL_ID    Identificador del terminal (por defecto uno aleatorio)
#   STALL_TOKEN_POLICY   'rolling' (mod 999) o 'daily' (cuenta de hoy)
#   STALL_SYNC_URL       URL del relay REST (vacío = sin réplica remota)
#   STALL_SYNC_INTERVAL  Segundos entre polls al relay
#   STALL_PRINT_HUB      1 = este terminal maneja la impresora física
#   STALL_PROFILING      1 = activar performance_logger
# ==============================================================================

import os
import uuid
from dataclasses import dataclass, field
from typing import Mapping, Optional

_DEFAULT_SECRET = "app_stall_dev_secret_key_change_in_production"

TOKEN_POLICIES = ('rolling', 'daily')


def _env_bool(env: Mapping[str, str], key: str, default: bool = False) -> bool:
    value = env.get(key)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on', 'si', 'sí')


def _default_terminal_id() -> str:
    return f"T-{uuid.uuid4().hex[:6].upper()}"


@dataclass
class Config:
    """Configuración del terminal (inyectable en AppContainer y create_app)."""
    data_dir: str = field(default_factory=lambda: os.path.join(os.getcwd(), 'data'))
    secret_key: str = _DEFAULT_SECRET
    production: bool = False
    terminal_id: str = field(default_factory=_default_terminal_id)
    token_policy: str = 'rolling'
    sync_url: Optional[str] = None
    sync_interval: float = 2.0
    print_hub: bool = False
    profiling: bool = False

    def __post_init__(self):
        if self.token_policy not in TOKEN_POLICIES:
            raise ValueError(
                f"STALL_TOKEN_POLICY inválida: {self.token_policy!r} "
                f"(usar {' o '.join(TOKEN_POLICIES)})"
            )

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.data_dir, 'logs')

    @property
    def spool_dir(self) -> str:
        return os.path.join(self.data_dir, 'print_spool')

    @classmethod
    def from_env(cls, env: Mapping[str, str] = None) -> 'Config':
        """
        Construye la configuración desde variables de entorno.

        Args:
            env: Mapeo de variables (por defecto os.environ)
        """
        env = os.environ if env is None else env
        production = _env_bool(env, 'STALL_PRODUCTION')
        secret = env.get('STALL_SECRET_KEY')

        if production and not secret:
            print("[ADVERTENCIA] STALL_PRODUCTION activo sin STALL_SECRET_KEY definida")
            print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

        try:
            interval = float(env.get('STALL_SYNC_INTERVAL', '2'))
        except ValueError:
            interval = 2.0

        return cls(
            data_dir=env.get('STALL_DATA_DIR') or os.path.join(os.getcwd(), 'data'),
            secret_key=secret or _DEFAULT_SECRET,
            production=production,
            terminal_id=env.get('STALL_TERMINAL_ID') or _default_terminal_id(),
            token_policy=(env.get('STALL_TOKEN_POLICY') or 'rolling').strip().lower(),
            sync_url=env.get('STALL_SYNC_URL') or None,
            sync_interval=interval,
            print_hub=_env_bool(env, 'STALL_PRINT_HUB'),
            profiling=_env_bool(env, 'STALL_PROFILING'),
        )
