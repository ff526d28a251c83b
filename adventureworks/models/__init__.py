from .Currency import Currency
from .Product import Product

__all__ = ["Currency", "Product"]
