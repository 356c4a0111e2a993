"""
Product Service - the single-actor editing session behind the product form.

Keeps the current product draft, the customer's preview selections, an
undo/redo history and the last saved snapshot. All computation is delegated
to the PricingEngine; this class only decides what state to keep.
"""
import logging
from decimal import Decimal
from typing import Any, Optional

from ..config.settings import get_settings, Settings
from ..engine import PricingEngine, Product, load_example_product
from ..engine.errors import UnknownField
from ..engine.models import FieldType, PriceQuote, ValidationResult, to_decimal

logger = logging.getLogger(__name__)


class ProductSession:
    """Editing session for one product and its customer preview."""

    def __init__(self, engine: Optional[PricingEngine] = None, settings: Optional[Settings] = None):
        self.settings = settings or (engine.settings if engine else get_settings())
        self.engine = engine or PricingEngine(self.settings)
        self.product = Product()
        self.selections: dict[str, Any] = {}
        self.saved_product: Optional[Product] = None
        self._undo: list[tuple[Product, dict]] = []
        self._redo: list[tuple[Product, dict]] = []

    # History

    def _commit(self, product: Product, selections: Optional[dict] = None):
        """Make (product, selections) current, remembering the previous state."""
        selections = self.selections if selections is None else selections
        if product == self.product and selections == self.selections:
            return
        self._undo.append((self.product, dict(self.selections)))
        if len(self._undo) > self.settings.history_limit:
            del self._undo[0]
        self._redo.clear()
        self.product = product
        self.selections = dict(selections)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append((self.product, dict(self.selections)))
        self.product, self.selections = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append((self.product, dict(self.selections)))
        self.product, self.selections = self._redo.pop()
        return True

    # Product editing

    def update_product(self, **changes) -> Product:
        self._commit(self.engine.update_product(self.product, **changes))
        return self.product

    def add_special_field(self) -> Product:
        """Add a blank field. LimitExceeded propagates with the session unchanged."""
        self._commit(self.engine.add_special_field(self.product))
        return self.product

    def remove_special_field(self, field_id: str) -> Product:
        product = self.engine.remove_special_field(self.product, field_id)
        self._commit(product, self.engine.prune_selections(product, self.selections))
        return self.product

    def update_special_field(self, field_id: str, updates: dict) -> Product:
        product = self.engine.update_special_field(self.product, field_id, updates)
        self._commit(product, self.engine.prune_selections(product, self.selections, field_id=field_id))
        return self.product

    def add_dropdown_option(self, field_id: str) -> Product:
        self._commit(self.engine.add_dropdown_option(self.product, field_id))
        return self.product

    def remove_dropdown_option(self, field_id: str, option_id: str) -> Product:
        product = self.engine.remove_dropdown_option(self.product, field_id, option_id)
        self._commit(product, self.engine.prune_selections(product, self.selections, field_id=field_id))
        return self.product

    def update_dropdown_option(self, field_id: str, option_id: str, updates: dict) -> Product:
        self._commit(self.engine.update_dropdown_option(self.product, field_id, option_id, updates))
        return self.product

    # Customer preview

    def set_selection(self, field_id: str, raw: Any) -> dict:
        """
        Record a customer's answer for a field, coerced to the field's type.

        Number input that does not parse counts as 0, as the form did; numbers
        beyond settings.max_number_selection raise ValueError.
        None or an empty dropdown choice clears the answer.
        """
        special_field = self.product.get_field(field_id)
        if special_field is None:
            raise UnknownField(field_id)

        if raw is None:
            return self.clear_selection(field_id)

        if special_field.type == FieldType.TEXT:
            value = str(raw)
        elif special_field.type == FieldType.NUMBER:
            value = self._parse_number(raw)
        else:
            value = str(raw)
            if not value:
                return self.clear_selection(field_id)

        self._commit(self.product, {**self.selections, field_id: value})
        return self.selections

    def clear_selection(self, field_id: str) -> dict:
        if field_id in self.selections:
            selections = dict(self.selections)
            del selections[field_id]
            self._commit(self.product, selections)
        return self.selections

    def _parse_number(self, raw: Any):
        try:
            value = to_decimal(raw)
        except ValueError:
            return 0
        limit = self.settings.max_number_selection
        if abs(value) > limit:
            raise ValueError(f"Number must be between -{limit} and {limit}")
        if value == value.to_integral_value():
            return int(value)
        return value

    def quote(self) -> PriceQuote:
        return self.engine.calculate(self.product, self.selections)

    def total_price(self) -> Decimal:
        return self.engine.calculate_total_price(self.product, self.selections)

    # Lifecycle

    def validate(self) -> ValidationResult:
        return self.engine.validate_product(self.product)

    def save(self) -> ValidationResult:
        """Validate and, on success, keep the product as the saved snapshot."""
        result = self.validate()
        if not result.valid:
            logger.info("Product not saved: %s", result.message)
            return result
        self.saved_product = self.product
        logger.info("Product Configuration: %s", self.product.to_dict())
        return result

    def load_example(self) -> Product:
        self._commit(load_example_product(), {})
        return self.product

    def reset(self) -> Product:
        self._commit(Product(), {})
        return self.product
