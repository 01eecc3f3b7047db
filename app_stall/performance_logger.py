# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas del terminal y de funciones críticas (cobro,
# resync). Guarda logs legibles en <data_dir>/logs/ para análisis humano.
#
# ACTIVAR: STALL_PROFILING=1 (ver Config.profiling) o configure(...)
# ==============================================================================

import logging
import os
import re
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'

# Estado del módulo: se fija en configure()
_settings = {'enabled': False, 'logs_dir': None}

# Mapeo de rutas a nombres legibles
ROUTE_NAMES = {
    # Menú
    'GET /api/menu': 'Ver menú',
    'POST /api/menu': 'Crear producto',
    'PUT /api/menu/<item_id>': 'Editar producto',
    'DELETE /api/menu/<item_id>': 'Eliminar producto',
    'POST /api/menu/<item_id>/toggle': 'Cambiar disponibilidad',

    # Carrito
    'GET /api/cart': 'Ver carrito',
    'POST /api/cart/items': 'Agregar al carrito',
    'PATCH /api/cart/items/<item_id>': 'Modificar línea',
    'DELETE /api/cart/items/<item_id>': 'Quitar del carrito',
    'POST /api/cart/clear': 'Vaciar carrito',
    'POST /api/cart/totals': 'Calcular totales',
    'POST /api/checkout': 'Confirmar venta',

    # Ventas y cocina
    'GET /api/sales': 'Ver historial',
    'GET /api/sales/active': 'Ver cola de cocina',
    'POST /api/sales/<sale_id>/status': 'Cambiar estado',
    'POST /api/sales/<sale_id>/void': 'Anular venta',
    'POST /api/sales/<sale_id>/reprint': 'Reimprimir boleta',

    # Caja y reportes
    'GET /api/reports/summary': 'Ver reportes',
    'GET /api/drawer': 'Ver caja',
    'PUT /api/opening-cash': 'Fijar fondo inicial',
    'GET /api/settings': 'Ver configuración',
    'PUT /api/settings': 'Guardar configuración',
    'POST /api/sync/resync': 'Resincronizar',

    # Backend REST
    'GET /api/orders': 'Listar órdenes',
    'POST /api/orders': 'Crear orden',
    'PUT /api/orders': 'Actualizar orden',
    'POST /api/sync/<namespace>/messages': 'Publicar mensaje de réplica',
    'GET /api/sync/<namespace>/messages': 'Leer mensajes de réplica',
    'GET /api/sync/<namespace>/state': 'Leer estado de réplica',
}


def configure(logs_dir: Optional[str] = None, enabled: bool = True) -> None:
    """Activa el profiling y define dónde se escriben los logs."""
    _settings['enabled'] = enabled
    _settings['logs_dir'] = logs_dir
    if enabled and logs_dir:
        os.makedirs(logs_dir, exist_ok=True)


def is_enabled() -> bool:
    return bool(_settings['enabled'])


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES DE LOGGING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _log_path(filename):
    logs_dir = _settings['logs_dir']
    return os.path.join(logs_dir, filename) if logs_dir else None


def _write_log(filename, content):
    """Escribe contenido a un archivo de log (thread-safe)."""
    path = _log_path(filename)
    if not path:
        return
    try:
        with _write_lock:
            with open(path, 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        # Un log que no se puede escribir no debe cortar la venta
        logger.debug("No se pudo escribir %s: %s", path, e)


def _get_route_name(method, path, rule=None):
    """
    Nombre legible para una ruta: match exacto, luego por regla de Flask,
    luego por patrones con parámetros. Si no, la ruta raw.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    for route_pattern, name in ROUTE_NAMES.items():
        pattern_method, pattern_path = route_pattern.split(' ', 1)
        if pattern_method != method or '<' not in pattern_path:
            continue
        if re.fullmatch(re.sub(r'<[^>]+>', r'[^/]+', pattern_path), path):
            return name

    return key


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, terminal=None):
    if not is_enabled():
        return

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {_get_route_name(method, path, rule)}
Terminal: {terminal or 'desconocido'}
Ruta: {method} {path}
Tiempo: {time_ms:.0f} ms
"""
    _write_log(PERFORMANCE_LOG, log_entry)


def log_slow_route(method, path, rule, time_ms, terminal=None, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>300ms) o 'CRITICAL' (>700ms)
    """
    if not is_enabled():
        return

    emoji = '⚠️' if level == 'WARNING' else '🔴'
    severity = 'LENTA' if level == 'WARNING' else 'MUY LENTA'
    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL

    log_entry = f"""
{emoji} [{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {_get_route_name(method, path, rule)}
Terminal: {terminal or 'desconocido'}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {threshold} ms)
────────────────────────────────────────
"""
    _write_log(SLOW_ROUTES_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app, terminal_id=None):
    """
    Registra hooks before_request/after_request en la app Flask.

    Uso:
        configure(config.logs_dir)
        init_profiling(app, config.terminal_id)
    """
    if not is_enabled():
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000
        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path

        log_route_performance(method, path, rule, elapsed, terminal_id)
        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, terminal_id, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, terminal_id, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function(name="Confirmar venta")
        def commit(...):
            ...

    El estado de activación se consulta en cada llamada: los decoradores se
    aplican al importar, antes de que la app lea su configuración.
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not is_enabled():
                return fn(*args, **kwargs)
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms
                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'
    emoji = '🔴' if time_ms >= THRESHOLD_CRITICAL else '⚠️'

    log_entry = f"""
{emoji} [{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
"""
    _write_log(SLOW_FUNCTIONS_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 4️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats() -> Dict[str, Dict[str, float]]:
    """
    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2),
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'configure',
    'is_enabled',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
