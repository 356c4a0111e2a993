"""Canned example product for demos and tests."""
from decimal import Decimal

from .models import (
    DropdownOption,
    DropdownSettings,
    PricingModel,
    Product,
    SpecialField,
    TextSettings,
)


def load_example_product() -> Product:
    """A personalised t-shirt: per-character engraving plus a size surcharge."""
    return Product(
        name="Custom T-Shirt",
        description="Personalized cotton t-shirt with custom text",
        base_price=Decimal("25.00"),
        special_fields_enabled=True,
        special_fields=(
            SpecialField(
                id="1",
                label="Engraving Text",
                price=Decimal("0.50"),
                settings=TextSettings(
                    pricing_model=PricingModel.PER_CHARACTER,
                    min_length=1,
                    max_length=50,
                ),
            ),
            SpecialField(
                id="2",
                label="Size",
                price=Decimal("0"),
                settings=DropdownSettings(options=(
                    DropdownOption(id="opt1", name="Small", price=Decimal("0")),
                    DropdownOption(id="opt2", name="Medium", price=Decimal("2")),
                    DropdownOption(id="opt3", name="Large", price=Decimal("4")),
                    DropdownOption(id="opt4", name="XL", price=Decimal("6")),
                )),
            ),
        ),
    )
