"""
Pricing Engine - special field editing and total price calculation.

All operations are pure: they take a Product (and customer selections) and
return new values, leaving their inputs untouched.

Price of a configured product:
1. Start from the product's base price
2. For each special field, add its contribution for the customer's selection
   - text:     fixed price for any non-empty value, or price × characters
   - number:   fixed price once answered, or price × entered quantity
   - dropdown: the selected option's surcharge
3. Missing or mismatched selections contribute nothing
"""
import logging
import math
import uuid
from dataclasses import replace
from decimal import (
    Context,
    Decimal,
    InvalidOperation,
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    ROUND_HALF_UP,
    localcontext,
)
from typing import Any, Callable, Mapping, Optional

from ..config.settings import get_settings, Settings
from .errors import LimitExceeded
from .models import (
    DropdownOption,
    DropdownSettings,
    FieldCharge,
    FieldType,
    MAX_SPECIAL_FIELDS,
    NumberSettings,
    PriceQuote,
    PricingModel,
    Product,
    SelectionValue,
    SpecialField,
    TextSettings,
    ValidationResult,
    default_settings,
    to_decimal,
)
from .validation import validate_product

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Sums, products and quantize are exact in this context; base prices are
# never rounded away by large quantities.
EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN, rounding=ROUND_HALF_UP)

FIELD_UPDATE_KEYS = frozenset({
    'label', 'type', 'pricing_model', 'price',
    'min_length', 'max_length', 'min_value', 'max_value', 'dropdown_options',
})
PRODUCT_UPDATE_KEYS = frozenset({'name', 'description', 'base_price', 'special_fields_enabled'})
OPTION_UPDATE_KEYS = frozenset({'name', 'price'})

# Payload attributes each field type accepts from a partial update
_SETTINGS_KEYS = {
    TextSettings: ('min_length', 'max_length'),
    NumberSettings: ('min_value', 'max_value'),
    DropdownSettings: (),
}


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def is_numeric_selection(value: Any) -> bool:
    """True for finite int/float/Decimal values (bool is not a number here)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return False


class PricingEngine:
    """
    Pure operations over Product values.

    Every mutator returns a new Product. Lookups by id that miss are no-ops,
    so callers can fire edits from UI callbacks without pre-checking.
    """

    def __init__(self, settings: Optional[Settings] = None, id_factory: Optional[Callable[[], str]] = None):
        self.settings = settings or get_settings()
        self._new_id = id_factory or _new_id

    # ------------------------------------------------------------------
    # Product and special field editing
    # ------------------------------------------------------------------

    def update_product(self, product: Product, **changes) -> Product:
        """Update name, description, base price or the special-fields switch."""
        unknown = set(changes) - PRODUCT_UPDATE_KEYS
        if unknown:
            logger.debug("Ignoring unknown product attributes: %s", ", ".join(sorted(unknown)))
        known = {k: v for k, v in changes.items() if k in PRODUCT_UPDATE_KEYS}
        if not known:
            return product
        if 'name' in known:
            known['name'] = str(known['name'] or '')
        if 'description' in known:
            known['description'] = str(known['description'] or '')
        return replace(product, **known)

    @property
    def max_special_fields(self) -> int:
        """Configured field limit, never above what a Product can hold."""
        return min(self.settings.max_special_fields, MAX_SPECIAL_FIELDS)

    def can_add_special_field(self, product: Product) -> bool:
        return len(product.special_fields) < self.max_special_fields

    def add_special_field(self, product: Product) -> Product:
        """Append a blank text field priced 0. Raises LimitExceeded when full."""
        if not self.can_add_special_field(product):
            logger.warning(
                "Refusing to add special field: product already has %d (limit %d)",
                len(product.special_fields), self.max_special_fields,
            )
            raise LimitExceeded(self.max_special_fields)

        new_field = SpecialField(id=self._new_id())
        logger.debug("Added special field %s", new_field.id)
        return replace(product, special_fields=product.special_fields + (new_field,))

    def remove_special_field(self, product: Product, field_id: str) -> Product:
        """Remove a field by id. Missing ids are ignored."""
        remaining = tuple(f for f in product.special_fields if f.id != field_id)
        if len(remaining) == len(product.special_fields):
            return product
        logger.debug("Removed special field %s", field_id)
        return replace(product, special_fields=remaining)

    def update_special_field(self, product: Product, field_id: str, updates: Mapping[str, Any]) -> Product:
        """
        Merge a partial update into a field.

        A change of `type` first resets the field's payload to the new type's
        defaults (dropping options, bounds and pricing model), then the rest
        of the update is applied on top. Attributes that do not fit the
        resulting type are ignored.
        """
        current = product.get_field(field_id)
        if current is None:
            return product
        return self._replace_field(product, self._apply_field_updates(current, updates))

    def add_dropdown_option(self, product: Product, field_id: str) -> Product:
        """Append a blank option to a dropdown field."""
        current = product.get_field(field_id)
        if current is None or current.type != FieldType.DROPDOWN:
            return product
        options = current.options + (DropdownOption(id=self._new_id()),)
        return self._replace_field(product, replace(current, settings=DropdownSettings(options=options)))

    def remove_dropdown_option(self, product: Product, field_id: str, option_id: str) -> Product:
        """Remove an option. The last remaining option is never removed."""
        current = product.get_field(field_id)
        if current is None or current.get_option(option_id) is None:
            return product
        if len(current.options) <= 1:
            logger.debug("Keeping last option %s of field %s", option_id, field_id)
            return product
        options = tuple(opt for opt in current.options if opt.id != option_id)
        return self._replace_field(product, replace(current, settings=DropdownSettings(options=options)))

    def update_dropdown_option(
        self,
        product: Product,
        field_id: str,
        option_id: str,
        updates: Mapping[str, Any],
    ) -> Product:
        """Update an option's name and/or price."""
        current = product.get_field(field_id)
        if current is None or current.get_option(option_id) is None:
            return product

        changes = {k: v for k, v in updates.items() if k in OPTION_UPDATE_KEYS}
        if 'name' in changes:
            changes['name'] = str(changes['name'] or '')
        if not changes:
            return product

        options = tuple(
            replace(opt, **changes) if opt.id == option_id else opt
            for opt in current.options
        )
        return self._replace_field(product, replace(current, settings=DropdownSettings(options=options)))

    def prune_selections(
        self,
        product: Product,
        selections: Mapping[str, SelectionValue],
        field_id: Optional[str] = None,
    ) -> dict:
        """
        Drop selections whose field no longer exists.

        With field_id, also drop that field's value if the field can no longer
        accept it (e.g. a string left behind after a text field became a number
        field). Other fields' values are left alone.
        """
        kept = {}
        for selected_id, value in selections.items():
            special_field = product.get_field(selected_id)
            if special_field is None:
                continue
            if selected_id == field_id and not self.accepts_selection(special_field, value):
                continue
            kept[selected_id] = value
        return kept

    def _apply_field_updates(self, current: SpecialField, updates: Mapping[str, Any]) -> SpecialField:
        unknown = set(updates) - FIELD_UPDATE_KEYS
        if unknown:
            logger.debug("Ignoring unknown field attributes: %s", ", ".join(sorted(unknown)))

        settings = current.settings
        if 'type' in updates:
            new_type = FieldType(updates['type'])
            if new_type != current.type:
                settings = default_settings(new_type, self._new_id())
                logger.debug("Field %s changed type %s → %s", current.id, current.type.value, new_type.value)

        settings = self._apply_settings_updates(settings, updates)

        label = updates['label'] if 'label' in updates else current.label
        price = updates['price'] if 'price' in updates else current.price
        return SpecialField(id=current.id, label=str(label or ''), price=price, settings=settings)

    def _apply_settings_updates(self, settings, updates: Mapping[str, Any]):
        changes = {}
        accepted = _SETTINGS_KEYS[type(settings)]

        for key, value in updates.items():
            if key == 'pricing_model':
                model = PricingModel(value)
                if model not in settings.allowed_models:
                    logger.debug("Ignoring pricing model %s for %s field", model.value, settings.field_type.value)
                elif not isinstance(settings, DropdownSettings):
                    changes['pricing_model'] = model
            elif key == 'dropdown_options':
                if isinstance(settings, DropdownSettings):
                    changes['options'] = tuple(self._coerce_option(opt) for opt in value)
                else:
                    logger.debug("Ignoring dropdown options for %s field", settings.field_type.value)
            elif key in accepted:
                changes[key] = value
            elif key in ('min_length', 'max_length', 'min_value', 'max_value'):
                logger.debug("Ignoring %s for %s field", key, settings.field_type.value)

        return replace(settings, **changes) if changes else settings

    def _coerce_option(self, option) -> DropdownOption:
        if isinstance(option, DropdownOption):
            return option
        data = dict(option)
        return DropdownOption(
            id=str(data.get('id') or self._new_id()),
            name=str(data.get('name') or ''),
            price=data.get('price') or 0,
        )

    @staticmethod
    def _replace_field(product: Product, new_field: SpecialField) -> Product:
        fields = tuple(new_field if f.id == new_field.id else f for f in product.special_fields)
        return replace(product, special_fields=fields)

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def accepts_selection(self, special_field: SpecialField, value: Any) -> bool:
        """Whether `value` is the kind of answer this field takes."""
        if special_field.type == FieldType.TEXT:
            return isinstance(value, str)
        if special_field.type == FieldType.NUMBER:
            return is_numeric_selection(value)
        return special_field.get_option(value) is not None

    def field_contribution(self, special_field: SpecialField, selection: Any) -> Decimal:
        """Amount one field adds to the total for the given selection."""
        settings = special_field.settings
        price = special_field.price

        if isinstance(settings, TextSettings):
            if not isinstance(selection, str):
                return ZERO
            if settings.pricing_model == PricingModel.PER_CHARACTER:
                with localcontext(EXACT):
                    return price * len(selection)
            return price if selection else ZERO

        if isinstance(settings, NumberSettings):
            if not is_numeric_selection(selection):
                return ZERO
            if settings.pricing_model == PricingModel.PER_UNIT:
                with localcontext(EXACT):
                    return price * to_decimal(selection)
            if self.settings.legacy_number_truthiness and not selection:
                return ZERO
            return price

        option = special_field.get_option(selection)
        return option.price if option else ZERO

    def calculate_total_price(self, product: Product, selections: Optional[Mapping[str, Any]] = None) -> Decimal:
        """Base price plus every special field's contribution."""
        selections = selections or {}
        with localcontext(EXACT):
            return product.base_price + sum(
                (self.field_contribution(f, selections.get(f.id)) for f in product.special_fields),
                ZERO,
            )

    def calculate(self, product: Product, selections: Optional[Mapping[str, Any]] = None) -> PriceQuote:
        """
        Calculate the total with a per-field breakdown and trace.

        Warnings flag customer input outside the field's configured bounds;
        they never change the price.
        """
        selections = selections or {}
        quote = PriceQuote(
            product_name=product.name,
            base_price=product.base_price,
            total=product.base_price,
        )
        quote.add_trace("Base Price", "Product base price", self.format_money(product.base_price))

        for special_field in product.special_fields:
            selection = selections.get(special_field.id)
            amount = self.field_contribution(special_field, selection)
            quote.lines.append(FieldCharge(
                field_id=special_field.id,
                label=special_field.label,
                field_type=special_field.type,
                pricing_model=special_field.pricing_model,
                selection=selection,
                amount=amount,
            ))
            with localcontext(EXACT):
                quote.total += amount

            name = special_field.label or special_field.id
            if selection is None:
                quote.add_trace("Field", f"{name}: no selection", None)
            else:
                quote.add_trace("Field", f"{name}: {self._describe_charge(special_field, selection)}",
                                self.format_money(amount))
                self._check_bounds(special_field, selection, quote)

        quote.add_trace("Total", "Base price + special fields", self.format_money(quote.total))
        return quote

    def describe_pricing(self, special_field: SpecialField) -> str:
        """Customer-facing hint for how a field is priced."""
        if special_field.type == FieldType.DROPDOWN:
            return "Customer pays the price of the selected option"
        text = f"Customer pays {self.format_money(special_field.price)} fixed price"
        if special_field.pricing_model == PricingModel.PER_CHARACTER:
            text += " × number of characters"
        elif special_field.pricing_model == PricingModel.PER_UNIT:
            text += " × quantity"
        return text

    def format_money(self, amount: Decimal) -> str:
        try:
            with localcontext(EXACT):
                text = str(amount.quantize(CENT, rounding=ROUND_HALF_UP))
        except InvalidOperation:
            text = str(amount)
        return f"{self.settings.currency_symbol}{text}"

    def _describe_charge(self, special_field: SpecialField, selection: Any) -> str:
        price = self.format_money(special_field.price)
        if special_field.type == FieldType.DROPDOWN:
            option = special_field.get_option(selection)
            return f"option {option.name or option.id}" if option else f"unknown option {selection!r}"
        if special_field.pricing_model == PricingModel.PER_CHARACTER and isinstance(selection, str):
            return f"{len(selection)} characters × {price}"
        if special_field.pricing_model == PricingModel.PER_UNIT and is_numeric_selection(selection):
            return f"{selection} × {price}"
        return "fixed price"

    def _check_bounds(self, special_field: SpecialField, selection: Any, quote: PriceQuote):
        name = special_field.label or special_field.id
        settings = special_field.settings

        if not self.accepts_selection(special_field, selection):
            if isinstance(settings, DropdownSettings):
                quote.add_warning(f"{name}: unknown option {selection!r}")
            else:
                quote.add_warning(f"{name}: expected a {settings.field_type.value} value")
            return

        if isinstance(settings, TextSettings):
            if settings.min_length is not None and len(selection) < settings.min_length:
                quote.add_warning(f"{name}: must be at least {settings.min_length} characters")
            if settings.max_length is not None and len(selection) > settings.max_length:
                quote.add_warning(f"{name}: must be at most {settings.max_length} characters")
        elif isinstance(settings, NumberSettings):
            value = to_decimal(selection)
            if settings.min_value is not None and value < settings.min_value:
                quote.add_warning(f"{name}: must be at least {settings.min_value}")
            if settings.max_value is not None and value > settings.max_value:
                quote.add_warning(f"{name}: must be at most {settings.max_value}")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_product(self, product: Product) -> ValidationResult:
        """Check the merchant configuration; returns the first failed rule."""
        return validate_product(product)
