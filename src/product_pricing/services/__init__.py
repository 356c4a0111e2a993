"""Services subpackage - stateful editing on top of the engine."""
from .product_service import ProductSession

__all__ = ['ProductSession']
