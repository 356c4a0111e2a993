"""Engine subpackage - product model, price calculation and validation."""
from .pricing_engine import PricingEngine
from .models import (
    DropdownOption,
    FieldType,
    PriceQuote,
    PricingModel,
    Product,
    SpecialField,
    ValidationResult,
    ValidationRule,
)
from .errors import LimitExceeded, PricingError, UnknownField
from .example import load_example_product
from .validation import validate_product

__all__ = [
    'PricingEngine', 'Product', 'SpecialField', 'DropdownOption', 'FieldType',
    'PricingModel', 'PriceQuote', 'ValidationResult', 'ValidationRule',
    'LimitExceeded', 'PricingError', 'UnknownField',
    'load_example_product', 'validate_product',
]
