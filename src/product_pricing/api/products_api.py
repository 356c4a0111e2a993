"""
Products API - FastAPI router for editing the product and previewing prices.
"""
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..engine.errors import PricingError
from ..engine.models import FieldType, PricingModel
from ..services.product_service import ProductSession
from .state import get_session

router = APIRouter(prefix="/api/product", tags=["product"])


# Pydantic models for API
class ProductUpdate(BaseModel):
    """Request model for the basic product information."""
    name: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[Decimal] = None
    special_fields_enabled: Optional[bool] = None


class OptionIn(BaseModel):
    id: Optional[str] = None
    name: str = ""
    price: Decimal = Decimal("0")


class FieldUpdate(BaseModel):
    """Request model for updating a special field."""
    label: Optional[str] = None
    type: Optional[FieldType] = None
    pricing_model: Optional[PricingModel] = None
    price: Optional[Decimal] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    dropdown_options: Optional[list[OptionIn]] = None


class OptionUpdate(BaseModel):
    """Request model for updating a dropdown option."""
    name: Optional[str] = None
    price: Optional[Decimal] = None


class SelectionIn(BaseModel):
    """A customer's answer for one special field."""
    value: Any = None


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    rule: Optional[str]
    message: str
    field_id: Optional[str]
    option_id: Optional[str]


def _json_value(value: Any) -> Any:
    return float(value) if isinstance(value, Decimal) else value


def _state(session: ProductSession) -> dict:
    return {
        "product": session.product.to_dict(),
        "selections": {k: _json_value(v) for k, v in session.selections.items()},
        "total": float(session.total_price()),
        "can_add_field": session.engine.can_add_special_field(session.product),
        "can_undo": session.can_undo,
        "can_redo": session.can_redo,
    }


def _run(session: ProductSession, action, *args) -> dict:
    """Run a session edit, turning engine errors into HTTP errors."""
    try:
        action(*args)
    except PricingError as e:
        raise HTTPException(status_code=e.status_code, detail={"code": e.code, "message": e.message})
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _state(session)


# Endpoints

@router.get("")
async def get_product(session: ProductSession = Depends(get_session)):
    """Current product, selections and total."""
    return _state(session)


@router.put("")
async def update_product(updates: ProductUpdate, session: ProductSession = Depends(get_session)):
    """Update the basic product information."""
    return _run(session, lambda: session.update_product(**updates.model_dump(exclude_unset=True)))


@router.post("/fields")
async def add_field(session: ProductSession = Depends(get_session)):
    """Add a blank special field."""
    return _run(session, session.add_special_field)


@router.patch("/fields/{field_id}")
async def update_field(field_id: str, updates: FieldUpdate, session: ProductSession = Depends(get_session)):
    """Update a special field; a type change resets type-specific settings."""
    update_dict = updates.model_dump(exclude_unset=True)
    return _run(session, session.update_special_field, field_id, update_dict)


@router.delete("/fields/{field_id}")
async def delete_field(field_id: str, session: ProductSession = Depends(get_session)):
    """Remove a special field and the customer's answer for it."""
    return _run(session, session.remove_special_field, field_id)


@router.post("/fields/{field_id}/options")
async def add_option(field_id: str, session: ProductSession = Depends(get_session)):
    return _run(session, session.add_dropdown_option, field_id)


@router.patch("/fields/{field_id}/options/{option_id}")
async def update_option(
    field_id: str,
    option_id: str,
    updates: OptionUpdate,
    session: ProductSession = Depends(get_session),
):
    update_dict = updates.model_dump(exclude_unset=True)
    return _run(session, session.update_dropdown_option, field_id, option_id, update_dict)


@router.delete("/fields/{field_id}/options/{option_id}")
async def delete_option(field_id: str, option_id: str, session: ProductSession = Depends(get_session)):
    return _run(session, session.remove_dropdown_option, field_id, option_id)


@router.put("/selections/{field_id}")
async def set_selection(field_id: str, selection: SelectionIn, session: ProductSession = Depends(get_session)):
    """Record the customer's answer for a field."""
    return _run(session, session.set_selection, field_id, selection.value)


@router.delete("/selections/{field_id}")
async def clear_selection(field_id: str, session: ProductSession = Depends(get_session)):
    return _run(session, session.clear_selection, field_id)


@router.get("/quote")
async def get_quote(session: ProductSession = Depends(get_session)):
    """Price breakdown for the current selections."""
    return session.quote().to_dict()


@router.post("/validate", response_model=ValidationResponse)
async def validate_product(session: ProductSession = Depends(get_session)):
    """Validate the product without saving."""
    return ValidationResponse(**session.validate().to_dict())


@router.post("/save")
async def save_product(session: ProductSession = Depends(get_session)):
    """Validate and save the product configuration."""
    result = session.save()
    if not result.valid:
        raise HTTPException(status_code=400, detail=result.to_dict())
    return {"success": True, "product": session.saved_product.to_dict()}


@router.post("/example")
async def load_example(session: ProductSession = Depends(get_session)):
    return _run(session, session.load_example)


@router.post("/reset")
async def reset(session: ProductSession = Depends(get_session)):
    return _run(session, session.reset)


@router.post("/undo")
async def undo(session: ProductSession = Depends(get_session)):
    return _run(session, session.undo)


@router.post("/redo")
async def redo(session: ProductSession = Depends(get_session)):
    return _run(session, session.redo)
