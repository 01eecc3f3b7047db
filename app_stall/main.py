# ==============================================================================
# APLICACIÓN FLASK - API JSON del terminal y del backend
# ==============================================================================
# Una misma app expone tres superficies:
#   - API del terminal: menú, carrito, cobro, cola de cocina, caja, reportes
#   - Backend REST de pedidos (/api/orders)
#   - Relay de réplica (/api/sync/<namespace>/...)
#
# La lógica de negocio vive en services/. Las rutas solo traducen HTTP:
#   {'ok': False, 'error'} -> 400 (404 si not_found, 403 si falta rol)
#
# ROL: cabecera X-Stall-Role (ADMIN | WORKER). Nombre: X-Stall-User.
# ==============================================================================

from functools import wraps

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import MethodNotAllowed

from app_stall.app_container import AppContainer
from app_stall.config import Config
from app_stall.models.entities import Discount, SaleRecord, UserRole
from app_stall.models.money import InvalidMoneyError, format_money, money_or_none, money_str
from app_stall.performance_logger import init_profiling
from app_stall.services import receipt_service
from app_stall.services.stats_service import summary_to_json

ROLE_HEADER = 'X-Stall-Role'
USER_HEADER = 'X-Stall-User'


# ═══════════════════════════════════════════════════════════════════════════
# SERIALIZACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def sale_to_json(record: SaleRecord) -> dict:
    """Venta para la API: registro completo + banderas para la vista."""
    data = record.to_dict()
    data['is_voided'] = record.is_voided
    data['display_total'] = format_money(record.total)
    return data


def _current_role() -> str:
    return (request.headers.get(ROLE_HEADER) or UserRole.WORKER.value).strip().upper()


def _current_user() -> str:
    return (request.headers.get(USER_HEADER) or '').strip()


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error(result: dict):
    """Traduce un resultado fallido de un servicio a respuesta HTTP."""
    code = result.get('code') or (404 if result.get('not_found') else 400)
    return {'ok': False, 'error': result.get('error', 'Solicitud inválida')}, code


def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if _current_role() != UserRole.ADMIN.value:
            return {'ok': False, 'error': 'Permiso denegado: se requiere ADMIN'}, 403
        return f(*args, **kwargs)
    return wrapper


def _discount_from(data: dict) -> Discount:
    return Discount.from_input(data.get('discount_type'), data.get('discount_value'))


# ═══════════════════════════════════════════════════════════════════════════
# APP FACTORY
# ═══════════════════════════════════════════════════════════════════════════

def create_app(container: AppContainer = None, config: Config = None) -> Flask:
    """
    Crea la app Flask de un terminal.

    Args:
        container: Contenedor ya construido (tests, varios terminales)
        config: Configuración si no se pasa contenedor
    """
    container = container or AppContainer(config)
    container.start()

    app = Flask(__name__)
    app.config['SECRET_KEY'] = container.config.secret_key
    app.extensions['app_stall'] = container

    init_profiling(app, container.config.terminal_id)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Stall-Terminal'] = container.config.terminal_id
        return response

    # =========================================================================
    # ESTADO DEL TERMINAL
    # =========================================================================

    @app.route('/api/health', methods=['GET'])
    def health():
        replication = container.replication_service
        return {
            'ok': True,
            'terminal_id': container.config.terminal_id,
            'namespace': container.settings_service.namespace(),
            'replication': replication is not None,
            'outbox': replication.pending_outbox() if replication else None,
            'next_token': container.ledger_service.next_token_preview(),
        }

    # =========================================================================
    # MENÚ
    # =========================================================================

    @app.route('/api/menu', methods=['GET'])
    def menu_list():
        available_only = request.args.get('available') in ('1', 'true', 'yes')
        items = container.catalog_service.list_items(
            category=request.args.get('category') or None,
            available_only=available_only,
            query=request.args.get('q', '')
        )
        return {
            'ok': True,
            'items': [item.to_dict() for item in items],
            'categories': container.catalog_service.categories(),
        }

    @app.route('/api/menu', methods=['POST'])
    @admin_required
    def menu_create():
        result = container.catalog_service.create_item(_json_body(), _current_user())
        if not result['ok']:
            return _error(result)
        return {'ok': True, 'item': result['item'].to_dict()}, 201

    @app.route('/api/menu/<item_id>', methods=['PUT'])
    @admin_required
    def menu_update(item_id):
        result = container.catalog_service.update_item(item_id, _json_body(), _current_user())
        if not result['ok']:
            return _error(result)
        return {'ok': True, 'item': result['item'].to_dict()}

    @app.route('/api/menu/<item_id>', methods=['DELETE'])
    @admin_required
    def menu_delete(item_id):
        result = container.catalog_service.delete_item(item_id, _current_user())
        if not result['ok']:
            return _error(result)
        return {'ok': True, 'item': result['item'].to_dict()}

    @app.route('/api/menu/<item_id>/toggle', methods=['POST'])
    def menu_toggle(item_id):
        result = container.catalog_service.toggle_availability(item_id, _current_user())
        if not result['ok']:
            return _error(result)
        return {'ok': True, 'item': result['item'].to_dict()}

    # =========================================================================
    # CARRITO
    # =========================================================================

    @app.route('/api/cart', methods=['GET'])
    def cart_view():
        return dict(container.cart_service.get_cart(), ok=True)

    @app.route('/api/cart/items', methods=['POST'])
    def cart_add():
        data = _json_body()
        result = container.cart_service.add_item(str(data.get('item_id', '')))
        if not result['ok']:
            return _error(result)
        return result

    @app.route('/api/cart/items/<item_id>', methods=['PATCH'])
    def cart_update(item_id):
        data = _json_body()
        result = container.cart_service.update_quantity(
            item_id, data.get('delta', 0), data.get('instructions')
        )
        if not result['ok']:
            return _error(result)
        return result

    @app.route('/api/cart/items/<item_id>', methods=['DELETE'])
    def cart_remove(item_id):
        result = container.cart_service.remove_item(item_id)
        if not result['ok']:
            return _error(result)
        return result

    @app.route('/api/cart/clear', methods=['POST'])
    def cart_clear():
        container.cart_service.clear()
        return dict(container.cart_service.get_cart(), ok=True)

    @app.route('/api/cart/totals', methods=['POST'])
    def cart_totals():
        """Vista previa de totales (no modifica nada)."""
        data = _json_body()
        try:
            discount = _discount_from(data)
            totals = container.pricing_service.quote(
                container.cart_service.cart,
                discount,
                (data.get('payment_method') or '').upper() or None,
                money_or_none(data.get('cash_received'))
            )
        except (ValueError, InvalidMoneyError) as e:
            return {'ok': False, 'error': str(e)}, 400
        return {'ok': True, 'totals': totals.to_dict()}

    # =========================================================================
    # COBRO
    # =========================================================================

    @app.route('/api/checkout', methods=['POST'])
    def checkout():
        """
        Body JSON:
        {
            "payment_method": "CASH" | "CARD" | "UPI",
            "cash_received": "200",
            "settled_by": "Ravi",
            "discount_type": "percent" | "fixed",
            "discount_value": "10"
        }
        """
        data = _json_body()
        try:
            discount = _discount_from(data)
        except ValueError as e:
            return {'ok': False, 'error': str(e)}, 400

        result = container.ledger_service.commit(
            data.get('payment_method'),
            data.get('settled_by') or _current_user(),
            data.get('cash_received'),
            discount
        )
        if not result['ok']:
            return _error(result)

        sale = result['sale']
        body = {
            'ok': True,
            'sale': sale_to_json(sale),
            'totals': result['totals'].to_dict(),
            'mensaje': f"Token #{sale.token_number} registrado ({sale.id})",
        }
        if result.get('print_error'):
            body['print_error'] = result['print_error']
        return body, 201

    # =========================================================================
    # VENTAS Y COLA DE COCINA
    # =========================================================================

    @app.route('/api/sales', methods=['GET'])
    def sales_history():
        records = container.ledger_service.history(request.args.get('q', ''))
        return jsonify({
            'ok': True,
            'count': len(records),
            'sales': [sale_to_json(r) for r in records],
        })

    @app.route('/api/sales/active', methods=['GET'])
    def sales_active():
        records = container.ledger_service.active_orders()
        return jsonify({'ok': True, 'orders': [sale_to_json(r) for r in records]})

    @app.route('/api/sales/token/<int:token_number>', methods=['GET'])
    def sales_by_token(token_number):
        records = container.ledger_service.find_by_token(token_number)
        return jsonify({'ok': True, 'sales': [sale_to_json(r) for r in records]})

    @app.route('/api/sales/<sale_id>', methods=['GET'])
    def sales_detail(sale_id):
        record = container.ledger_service.get_sale(sale_id)
        if not record:
            return {'ok': False, 'error': 'Venta no encontrada'}, 404
        return {'ok': True, 'sale': sale_to_json(record)}

    @app.route('/api/sales/<sale_id>/status', methods=['POST'])
    def sales_status(sale_id):
        data = _json_body()
        result = container.ledger_service.update_status(
            sale_id, data.get('status'), _current_user()
        )
        if not result['ok']:
            return _error(result)
        return {
            'ok': True,
            'changed': result['changed'],
            'old_status': result['old_status'],
            'sale': sale_to_json(result['sale']),
        }

    @app.route('/api/sales/<sale_id>/void', methods=['POST'])
    def sales_void(sale_id):
        data = _json_body()
        result = container.ledger_service.void(
            sale_id, _current_user(), confirm=data.get('confirm') is True
        )
        if not result['ok']:
            return _error(result)
        return {'ok': True, 'changed': result['changed'], 'sale': sale_to_json(result['sale'])}

    @app.route('/api/sales/<sale_id>/reprint', methods=['POST'])
    def sales_reprint(sale_id):
        record = container.ledger_service.get_sale(sale_id)
        if not record:
            return {'ok': False, 'error': 'Venta no encontrada'}, 404
        result = container.print_service.reprint(record)
        if not result['ok']:
            return _error(result)
        return result

    @app.route('/api/sales/<sale_id>/receipt', methods=['GET'])
    def sales_receipt(sale_id):
        """Texto de la boleta (?copy=customer|kitchen|duplicate)."""
        record = container.ledger_service.get_sale(sale_id)
        if not record:
            return {'ok': False, 'error': 'Venta no encontrada'}, 404
        copy = request.args.get('copy', receipt_service.COPY_CUSTOMER)
        try:
            text = receipt_service.render(record, container.settings_service.get_settings(), copy)
        except ValueError as e:
            return {'ok': False, 'error': str(e)}, 400
        return Response(text, mimetype='text/plain; charset=utf-8')

    # =========================================================================
    # CONFIGURACIÓN Y CAJA
    # =========================================================================

    @app.route('/api/settings', methods=['GET'])
    def settings_view():
        return {
            'ok': True,
            'settings': container.settings_service.get_settings().to_dict(),
            'opening_cash': money_str(container.settings_service.get_opening_cash()),
        }

    @app.route('/api/settings', methods=['PUT'])
    def settings_update():
        result = container.settings_service.update_settings(
            _json_body(), _current_role(), _current_user()
        )
        if not result['ok']:
            code = 403 if _current_role() != UserRole.ADMIN.value else 400
            return {'ok': False, 'error': result['error']}, code
        return {'ok': True, 'settings': result['settings'].to_dict()}

    @app.route('/api/opening-cash', methods=['PUT'])
    def opening_cash_update():
        data = _json_body()
        result = container.settings_service.set_opening_cash(
            data.get('amount'), _current_role(), _current_user()
        )
        if not result['ok']:
            code = 403 if _current_role() != UserRole.ADMIN.value else 400
            return {'ok': False, 'error': result['error']}, code
        return {'ok': True, 'opening_cash': money_str(result['opening_cash'])}

    @app.route('/api/drawer', methods=['GET'])
    def drawer_view():
        return {'ok': True, 'drawer': container.drawer_service.summary_json()}

    @app.route('/api/reports/summary', methods=['GET'])
    def reports_summary():
        try:
            recent = int(request.args.get('recent', 10))
        except ValueError:
            recent = 10
        summary = container.stats_service.summary(
            period=request.args.get('period', 'all'),
            custom_start=request.args.get('start'),
            custom_end=request.args.get('end'),
            recent_size=recent
        )
        return jsonify({'ok': True, 'summary': summary_to_json(summary)})

    @app.route('/api/audit', methods=['GET'])
    @admin_required
    def audit_view():
        logs = container.audit_service.get_logs(
            log_type=request.args.get('type') or None,
            related_id=request.args.get('related_id') or None
        )
        return jsonify({'ok': True, 'logs': logs})

    # =========================================================================
    # RÉPLICA (lado terminal)
    # =========================================================================

    @app.route('/api/sync/resync', methods=['POST'])
    def sync_resync():
        replication = container.replication_service
        if replication is None:
            return {'ok': False, 'error': 'Este terminal no tiene réplica configurada'}, 400
        result = replication.resync()
        if not result['ok']:
            return {'ok': False, 'error': result['error']}, 503
        return result

    # =========================================================================
    # RELAY DE RÉPLICA (lado servidor)
    # =========================================================================

    @app.route('/api/sync/<namespace>/messages', methods=['POST'])
    def relay_publish(namespace):
        result = container.sync_service.publish(namespace, _json_body())
        if not result['ok']:
            return _error(result)
        return result, 201

    @app.route('/api/sync/<namespace>/messages', methods=['GET'])
    def relay_messages(namespace):
        try:
            since = int(request.args.get('since', 0))
        except ValueError:
            return {'ok': False, 'error': 'Cursor inválido'}, 400
        return jsonify(dict(container.sync_service.messages_since(namespace, since), ok=True))

    @app.route('/api/sync/<namespace>/state', methods=['GET'])
    def relay_state(namespace):
        return jsonify(dict(container.sync_service.snapshot(namespace), ok=True))

    # =========================================================================
    # BACKEND REST DE PEDIDOS
    # =========================================================================

    @app.route('/api/orders', methods=['GET', 'POST', 'PUT'])
    def orders_handler():
        try:
            if request.method == 'GET':
                return jsonify(container.orders_service.recent_orders())

            if request.method == 'POST':
                result = container.orders_service.create_order(_json_body())
                if not result['ok']:
                    return {'error': result['error']}, result['code']
                return result['order'], 201

            result = container.orders_service.update_order(_json_body())
            if not result['ok']:
                return {'error': result['error']}, result['code']
            return result['order']
        except Exception as e:
            # Falla de persistencia: mismo contrato que el backend en la nube
            return {'error': 'Internal Server Error', 'details': str(e)}, 500

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(e):
        response = jsonify({'error': f'Method {request.method} Not Allowed'})
        response.status_code = 405
        if e.valid_methods:
            response.headers['Allow'] = ', '.join(e.valid_methods)
        return response

    return app
