from .venues import Venue
from .inventory import Product, SoftDrink, RestockRecord
from .staff import Worker
from .shifts import Shift, ShiftDraft

__all__ = [
    'Venue',
    'Product', 'SoftDrink', 'RestockRecord',
    'Worker',
    'Shift', 'ShiftDraft',
]
