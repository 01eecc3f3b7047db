"""
app_stall - Punto de venta para un puesto de comida.

Carrito, cobro con token, cola de cocina, réplica entre terminales del
mismo puesto, cuadre de caja y reportes.
"""

__version__ = '1.0.0'
