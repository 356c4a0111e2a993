"""
Data models for the product pricing engine.

Uses frozen dataclasses: every engine operation builds new values instead of
editing a product in place. A special field carries exactly one type payload
(TextSettings, NumberSettings or DropdownSettings), so attributes that do not
belong to the field's type cannot be set on it.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Union


SelectionValue = Union[str, int, float, Decimal]

# A product never carries more special fields than this
MAX_SPECIAL_FIELDS = 4


def to_decimal(value: Any) -> Decimal:
    """Convert a user-supplied amount to Decimal (via str, so 0.1 stays 0.1)."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


def _optional_length(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        length = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be an integer, got {value!r}") from e
    if length != value and not isinstance(value, str):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if length < 0:
        raise ValueError(f"{name} must be >= 0")
    return length


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DROPDOWN = "dropdown"


class PricingModel(str, Enum):
    BASE = "base"
    PER_CHARACTER = "perCharacter"
    PER_UNIT = "perUnit"


@dataclass(frozen=True)
class DropdownOption:
    """One fixed-price choice of a dropdown field."""
    id: str
    name: str = ""
    price: Decimal = Decimal("0")

    def __post_init__(self):
        object.__setattr__(self, 'price', to_decimal(self.price))

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'price': float(self.price)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'DropdownOption':
        if not data.get('id'):
            raise ValueError("Dropdown option requires an 'id'")
        return cls(
            id=str(data['id']),
            name=str(data.get('name') or ''),
            price=data.get('price') or 0,
        )


@dataclass(frozen=True)
class TextSettings:
    """Payload of a text field."""
    pricing_model: PricingModel = PricingModel.BASE
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    field_type: ClassVar[FieldType] = FieldType.TEXT
    allowed_models: ClassVar[tuple] = (PricingModel.BASE, PricingModel.PER_CHARACTER)

    def __post_init__(self):
        model = PricingModel(self.pricing_model)
        if model not in self.allowed_models:
            raise ValueError(f"Pricing model '{model.value}' is not valid for text fields")
        object.__setattr__(self, 'pricing_model', model)
        object.__setattr__(self, 'min_length', _optional_length(self.min_length, 'min_length'))
        object.__setattr__(self, 'max_length', _optional_length(self.max_length, 'max_length'))


@dataclass(frozen=True)
class NumberSettings:
    """Payload of a number field."""
    pricing_model: PricingModel = PricingModel.BASE
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None

    field_type: ClassVar[FieldType] = FieldType.NUMBER
    allowed_models: ClassVar[tuple] = (PricingModel.BASE, PricingModel.PER_UNIT)

    def __post_init__(self):
        model = PricingModel(self.pricing_model)
        if model not in self.allowed_models:
            raise ValueError(f"Pricing model '{model.value}' is not valid for number fields")
        object.__setattr__(self, 'pricing_model', model)
        object.__setattr__(self, 'min_value', _optional_decimal(self.min_value))
        object.__setattr__(self, 'max_value', _optional_decimal(self.max_value))


@dataclass(frozen=True)
class DropdownSettings:
    """Payload of a dropdown field. Always holds at least one option."""
    options: tuple[DropdownOption, ...]

    field_type: ClassVar[FieldType] = FieldType.DROPDOWN
    allowed_models: ClassVar[tuple] = (PricingModel.BASE,)

    def __post_init__(self):
        options = tuple(self.options)
        if not options:
            raise ValueError("Dropdown fields need at least one option")
        ids = [opt.id for opt in options]
        if len(ids) != len(set(ids)):
            raise ValueError("Dropdown option ids must be unique within a field")
        object.__setattr__(self, 'options', options)

    @property
    def pricing_model(self) -> PricingModel:
        return PricingModel.BASE


FieldSettings = Union[TextSettings, NumberSettings, DropdownSettings]


def default_settings(field_type: FieldType, option_id: str) -> FieldSettings:
    """Fresh payload for a field that has just become `field_type`."""
    field_type = FieldType(field_type)
    if field_type == FieldType.DROPDOWN:
        return DropdownSettings(options=(DropdownOption(id=option_id),))
    if field_type == FieldType.NUMBER:
        return NumberSettings()
    return TextSettings()


@dataclass(frozen=True)
class SpecialField:
    """A merchant-defined, customer-facing input that affects the price."""
    id: str
    label: str = ""
    price: Decimal = Decimal("0")
    settings: FieldSettings = field(default_factory=TextSettings)

    def __post_init__(self):
        object.__setattr__(self, 'price', to_decimal(self.price))
        if not isinstance(self.settings, (TextSettings, NumberSettings, DropdownSettings)):
            raise ValueError(f"Unsupported field settings: {self.settings!r}")

    @property
    def type(self) -> FieldType:
        return self.settings.field_type

    @property
    def pricing_model(self) -> PricingModel:
        return self.settings.pricing_model

    @property
    def options(self) -> tuple[DropdownOption, ...]:
        """Dropdown options, or an empty tuple for other field types."""
        if isinstance(self.settings, DropdownSettings):
            return self.settings.options
        return ()

    def get_option(self, option_id: Any) -> Optional[DropdownOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def to_dict(self) -> dict:
        """Convert to the camelCase shape used by the product form."""
        data = {
            'id': self.id,
            'label': self.label,
            'type': self.type.value,
            'pricingModel': self.pricing_model.value,
            'price': float(self.price),
        }
        settings = self.settings
        if isinstance(settings, TextSettings):
            if settings.min_length is not None:
                data['minLength'] = settings.min_length
            if settings.max_length is not None:
                data['maxLength'] = settings.max_length
        elif isinstance(settings, NumberSettings):
            if settings.min_value is not None:
                data['minValue'] = float(settings.min_value)
            if settings.max_value is not None:
                data['maxValue'] = float(settings.max_value)
        else:
            data['dropdownOptions'] = [opt.to_dict() for opt in settings.options]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SpecialField':
        """Create a SpecialField from its camelCase dict form."""
        if not data.get('id'):
            raise ValueError("Special field requires an 'id'")
        try:
            field_type = FieldType(data.get('type', FieldType.TEXT.value))
            pricing_model = PricingModel(data.get('pricingModel', PricingModel.BASE.value))
        except ValueError as e:
            raise ValueError(f"Special field '{data['id']}': {e}") from e

        if field_type == FieldType.TEXT:
            settings = TextSettings(
                pricing_model=pricing_model,
                min_length=data.get('minLength'),
                max_length=data.get('maxLength'),
            )
        elif field_type == FieldType.NUMBER:
            settings = NumberSettings(
                pricing_model=pricing_model,
                min_value=data.get('minValue'),
                max_value=data.get('maxValue'),
            )
        else:
            settings = DropdownSettings(
                options=tuple(DropdownOption.from_dict(opt) for opt in data.get('dropdownOptions') or ())
            )

        return cls(
            id=str(data['id']),
            label=str(data.get('label') or ''),
            price=data.get('price') or 0,
            settings=settings,
        )


@dataclass(frozen=True)
class Product:
    """A product with a base price and up to a handful of special fields."""
    name: str = ""
    description: str = ""
    base_price: Decimal = Decimal("0")
    special_fields_enabled: bool = False
    special_fields: tuple[SpecialField, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'base_price', to_decimal(self.base_price))
        object.__setattr__(self, 'special_fields_enabled', bool(self.special_fields_enabled))
        fields = tuple(self.special_fields)
        if len(fields) > MAX_SPECIAL_FIELDS:
            raise ValueError(f"A product can have at most {MAX_SPECIAL_FIELDS} special fields")
        ids = [f.id for f in fields]
        if len(ids) != len(set(ids)):
            raise ValueError("Special field ids must be unique within a product")
        object.__setattr__(self, 'special_fields', fields)

    def get_field(self, field_id: str) -> Optional[SpecialField]:
        for special_field in self.special_fields:
            if special_field.id == field_id:
                return special_field
        return None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'description': self.description,
            'basePrice': float(self.base_price),
            'specialFieldsEnabled': self.special_fields_enabled,
            'specialFields': [f.to_dict() for f in self.special_fields],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Product':
        return cls(
            name=str(data.get('name') or ''),
            description=str(data.get('description') or ''),
            base_price=data.get('basePrice') or 0,
            special_fields_enabled=bool(data.get('specialFieldsEnabled', False)),
            special_fields=tuple(SpecialField.from_dict(f) for f in data.get('specialFields') or ()),
        )


class ValidationRule(str, Enum):
    NAME_REQUIRED = "name_required"
    BASE_PRICE_NEGATIVE = "base_price_negative"
    LABEL_REQUIRED = "label_required"
    LABEL_NOT_UNIQUE = "label_not_unique"
    FIELD_PRICE_NEGATIVE = "field_price_negative"
    OPTION_NAME_REQUIRED = "option_name_required"
    OPTION_NAME_NOT_UNIQUE = "option_name_not_unique"
    OPTION_PRICE_NEGATIVE = "option_price_negative"


@dataclass
class ValidationResult:
    """Result of product validation: valid, or the first rule that failed."""
    valid: bool
    rule: Optional[ValidationRule] = None
    message: str = ""
    field_id: Optional[str] = None
    option_id: Optional[str] = None

    @classmethod
    def ok(cls) -> 'ValidationResult':
        return cls(valid=True)

    @classmethod
    def failed(
        cls,
        rule: ValidationRule,
        message: str,
        field_id: Optional[str] = None,
        option_id: Optional[str] = None,
    ) -> 'ValidationResult':
        return cls(valid=False, rule=rule, message=message, field_id=field_id, option_id=option_id)

    def to_dict(self) -> dict:
        return {
            'valid': self.valid,
            'rule': self.rule.value if self.rule else None,
            'message': self.message,
            'field_id': self.field_id,
            'option_id': self.option_id,
        }


@dataclass
class TraceStep:
    """A single step in the price calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class FieldCharge:
    """What one special field added to the total."""
    field_id: str
    label: str
    field_type: FieldType
    pricing_model: PricingModel
    selection: Optional[SelectionValue]
    amount: Decimal


@dataclass
class PriceQuote:
    """Complete result of a price calculation."""
    product_name: str
    base_price: Decimal
    total: Decimal
    lines: list[FieldCharge] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the quote trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning about the customer's input."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            'product_name': self.product_name,
            'base_price': float(self.base_price),
            'total': float(self.total),
            'lines': [
                {
                    'field_id': line.field_id,
                    'label': line.label,
                    'type': line.field_type.value,
                    'pricing_model': line.pricing_model.value,
                    'selection': float(line.selection) if isinstance(line.selection, Decimal) else line.selection,
                    'amount': float(line.amount),
                }
                for line in self.lines
            ],
            'warnings': list(self.warnings),
            'trace': [{'step': t.step, 'description': t.description, 'value': t.value} for t in self.trace],
        }
