"""
Business Module.

Client orders of purchased products, shipped by convoy within a wave.
Settlement, closure and cost rules come from the shared engines.
"""

from logistics_modules.business.models import Order, OrderLine, OrderStatus
from logistics_modules.business.workflows import (
    CONVOY_KIND,
    CONVOY_WORKFLOW,
    ORDER_KIND,
    ORDER_WORKFLOW,
    WAVE_KIND,
    WAVE_WORKFLOW,
)

__all__ = [
    "CONVOY_KIND",
    "CONVOY_WORKFLOW",
    "ORDER_KIND",
    "ORDER_WORKFLOW",
    "Order",
    "OrderLine",
    "OrderStatus",
    "WAVE_KIND",
    "WAVE_WORKFLOW",
]
