"""Process-wide editing session shared by the API routes."""
from ..services.product_service import ProductSession

session = ProductSession()


def get_session() -> ProductSession:
    return session
