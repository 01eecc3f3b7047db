# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# Punto de entrada para servidores WSGI como Gunicorn.
#
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# La configuración se lee del entorno (STALL_DATA_DIR, STALL_TERMINAL_ID,
# STALL_SYNC_URL, ...). Ver app_stall/config.py.
# ==============================================================================

from app_stall.app_container import get_container
from app_stall.main import create_app

app = create_app(get_container())

# ==============================================================================
# PUNTO DE ENTRADA
# ==============================================================================
# Para desarrollo local:
#   python wsgi.py
# ==============================================================================

if __name__ == '__main__':
    app.run(debug=not get_container().config.production, host='0.0.0.0', port=5000)
