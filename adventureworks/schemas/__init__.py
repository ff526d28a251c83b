# schemas/__init__.py

from .currency_schema import CurrencySchema
from .product_schema import ProductSchema

__all__ = [
    'CurrencySchema',
    'ProductSchema',
]
