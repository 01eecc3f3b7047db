# ==============================================================================
# DATOS INICIALES
# ==============================================================================
# Menú y configuración con los que arranca un puesto nuevo (primer arranque,
# cuando todavía no existen los JSON).
# ==============================================================================

INITIAL_MENU = [
    {'id': '1', 'name': 'Classic Burger', 'price': '85', 'category': 'Food', 'is_available': True},
    {'id': '2', 'name': 'Cheese Fries', 'price': '40', 'category': 'Sides', 'is_available': True},
    {'id': '3', 'name': 'Hot Dog', 'price': '50', 'category': 'Food', 'is_available': True},
    {'id': '4', 'name': 'Iced Tea', 'price': '25', 'category': 'Drinks', 'is_available': True},
    {'id': '5', 'name': 'Lemonade', 'price': '30', 'category': 'Drinks', 'is_available': True},
    {'id': '6', 'name': 'Tacos (3pcs)', 'price': '90', 'category': 'Food', 'is_available': True},
]

PREDEFINED_CATEGORIES = ['Food', 'Drinks', 'Sides', 'Dessert', 'Other']

DEFAULT_SETTINGS = {
    'stall_name': 'KC HIGH',
    'footer_message': 'Thank you for eating with us! Visit again.',
    'tax_rate': '5',
    'worker_accounts': [],
    'printer_enabled': False,
    'is_print_hub': False,
}

DEFAULT_OPENING_CASH = '1000'

# Rango del número de token visible
MAX_TOKEN_NUMBER = 999
