"""
Product validation - the checks a product must pass before it is saved.

Checks run in order and stop at the first failure:
1. Product name is required
2. Base price must be >= 0
3. With special fields enabled: labels required, and unique ignoring case
4. Every special field price must be >= 0
5. Dropdown options: names required, unique within the field, prices >= 0
Checks 4 and 5 run even when special fields are disabled, so a hidden field
can still block a save.
"""
from .models import Product, ValidationResult, ValidationRule


def _normalize(text: str) -> str:
    return text.strip().lower()


def validate_product(product: Product) -> ValidationResult:
    """Validate a product configuration, returning the first violated rule."""
    if not product.name.strip():
        return ValidationResult.failed(ValidationRule.NAME_REQUIRED, "Product name is required.")

    if product.base_price < 0:
        return ValidationResult.failed(
            ValidationRule.BASE_PRICE_NEGATIVE,
            "Base price must be greater than or equal to 0.",
        )

    if product.special_fields_enabled:
        for special_field in product.special_fields:
            if not _normalize(special_field.label):
                return ValidationResult.failed(
                    ValidationRule.LABEL_REQUIRED,
                    "All special field labels are required.",
                    field_id=special_field.id,
                )

        seen: set[str] = set()
        for special_field in product.special_fields:
            label = _normalize(special_field.label)
            if label in seen:
                return ValidationResult.failed(
                    ValidationRule.LABEL_NOT_UNIQUE,
                    f"Special field labels must be unique ('{special_field.label.strip()}' is used twice).",
                    field_id=special_field.id,
                )
            seen.add(label)

    for special_field in product.special_fields:
        if special_field.price < 0:
            return ValidationResult.failed(
                ValidationRule.FIELD_PRICE_NEGATIVE,
                "All prices must be greater than or equal to 0.",
                field_id=special_field.id,
            )

    for special_field in product.special_fields:
        result = _validate_options(special_field)
        if not result.valid:
            return result

    return ValidationResult.ok()


def _validate_options(special_field) -> ValidationResult:
    options = special_field.options

    for option in options:
        if not option.name.strip():
            return ValidationResult.failed(
                ValidationRule.OPTION_NAME_REQUIRED,
                "All dropdown option names are required.",
                field_id=special_field.id,
                option_id=option.id,
            )

    seen: set[str] = set()
    for option in options:
        name = _normalize(option.name)
        if name in seen:
            return ValidationResult.failed(
                ValidationRule.OPTION_NAME_NOT_UNIQUE,
                "Dropdown option names must be unique within the same field.",
                field_id=special_field.id,
                option_id=option.id,
            )
        seen.add(name)

    for option in options:
        if option.price < 0:
            return ValidationResult.failed(
                ValidationRule.OPTION_PRICE_NEGATIVE,
                "All dropdown option prices must be greater than or equal to 0.",
                field_id=special_field.id,
                option_id=option.id,
            )

    return ValidationResult.ok()
