import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from product_pricing import __version__
from product_pricing.config.settings import get_settings
from product_pricing.api.products_api import router as products_router
from product_pricing.api.state import session

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Product Pricing API",
    description="Configure products with special fields and preview customer prices",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Product Pricing API Active"}


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "max_special_fields": session.engine.max_special_fields,
        "legacy_number_truthiness": settings.legacy_number_truthiness,
        "special_fields": len(session.product.special_fields),
        "saved": session.saved_product is not None,
    }
