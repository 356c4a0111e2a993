import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from product_pricing.config.settings import Settings
from product_pricing.engine import FieldType, LimitExceeded, Product, UnknownField, ValidationRule
from product_pricing.services import ProductSession


@pytest.fixture(scope="function")
def session():
    return ProductSession(settings=Settings(project_root=Path(__file__).parent.parent))


@pytest.fixture
def example_session(session):
    session.load_example()
    return session


def test_new_session_is_empty(session):
    assert session.product == Product()
    assert session.selections == {}
    assert session.total_price() == Decimal("0")
    assert not session.can_undo


def test_selections_drive_total(example_session):
    example_session.set_selection("1", "HELLO")
    example_session.set_selection("2", "opt3")
    assert example_session.total_price() == Decimal("31.50")
    assert example_session.quote().total == Decimal("31.50")


def test_remove_field_purges_selection(example_session):
    """Deleting a field also drops the customer's answer for it."""
    example_session.set_selection("2", "opt4")
    example_session.remove_special_field("2")
    assert "2" not in example_session.selections
    assert example_session.total_price() == Decimal("25.00")


def test_type_change_drops_mismatched_selection(example_session):
    example_session.set_selection("1", "HELLO")
    example_session.update_special_field("1", {"type": "number"})
    assert example_session.product.get_field("1").type == FieldType.NUMBER
    assert example_session.selections == {}


def test_removing_selected_option_drops_selection(example_session):
    example_session.set_selection("2", "opt2")
    example_session.remove_dropdown_option("2", "opt2")
    assert "2" not in example_session.selections


def test_editing_one_field_keeps_other_answers(example_session):
    """A stale answer on another field survives an unrelated edit."""
    example_session.set_selection("2", "stale-option")
    example_session.update_special_field("1", {"label": "Renamed"})
    assert example_session.selections == {"2": "stale-option"}

    example_session.add_special_field()
    extra_id = example_session.product.special_fields[-1].id
    example_session.update_special_field(extra_id, {"type": "dropdown"})
    example_session.add_dropdown_option(extra_id)
    option_id = example_session.product.get_field(extra_id).options[-1].id
    example_session.remove_dropdown_option(extra_id, option_id)
    assert example_session.selections == {"2": "stale-option"}


def test_number_selection_is_parsed(session):
    session.add_special_field()
    field_id = session.product.special_fields[0].id
    session.update_special_field(field_id, {"type": "number", "pricing_model": "perUnit", "price": "2"})

    session.set_selection(field_id, "3")
    assert session.selections[field_id] == 3
    assert session.total_price() == Decimal("6")

    session.set_selection(field_id, "1.5")
    assert session.selections[field_id] == Decimal("1.5")

    session.set_selection(field_id, "abc")
    assert session.selections[field_id] == 0


def test_out_of_range_number_is_rejected(session):
    session.settings.max_number_selection = 100
    session.add_special_field()
    field_id = session.product.special_fields[0].id
    session.update_special_field(field_id, {"type": "number", "pricing_model": "perUnit", "price": "1"})

    session.set_selection(field_id, "100")
    with pytest.raises(ValueError, match="between -100 and 100"):
        session.set_selection(field_id, "1e30")
    with pytest.raises(ValueError):
        session.set_selection(field_id, -101)
    assert session.selections[field_id] == 100


def test_clearing_selections(example_session):
    example_session.set_selection("2", "opt1")
    example_session.set_selection("2", "")
    assert "2" not in example_session.selections

    example_session.set_selection("1", "HI")
    example_session.set_selection("1", None)
    assert example_session.selections == {}


def test_unknown_field_selection_raises(example_session):
    with pytest.raises(UnknownField):
        example_session.set_selection("missing", "x")


def test_limit_leaves_state_unchanged(session):
    for _ in range(4):
        session.add_special_field()
    before = session.product

    with pytest.raises(LimitExceeded):
        session.add_special_field()
    assert session.product is before


def test_undo_redo(session):
    session.update_product(name="Mug")
    session.update_product(base_price="10")

    assert session.undo()
    assert session.product.base_price == Decimal("0")
    assert session.product.name == "Mug"

    assert session.redo()
    assert session.product.base_price == Decimal("10")

    assert session.undo() and session.undo()
    assert session.product == Product()
    assert not session.undo()
    assert session.can_redo


def test_new_edit_clears_redo(session):
    session.update_product(name="Mug")
    session.undo()
    session.update_product(name="Cup")
    assert not session.can_redo
    assert not session.redo()


def test_history_limit(session):
    session.settings.history_limit = 2
    for price in ("1", "2", "3", "4"):
        session.update_product(base_price=price)
    assert session.undo() and session.undo()
    assert not session.undo()
    assert session.product.base_price == Decimal("2")


def test_save_requires_valid_product(session):
    result = session.save()
    assert not result.valid
    assert result.rule == ValidationRule.NAME_REQUIRED
    assert session.saved_product is None

    session.update_product(name="Mug", base_price="8")
    assert session.save().valid
    assert session.saved_product == session.product


def test_reset_clears_everything(example_session):
    example_session.set_selection("1", "HI")
    example_session.reset()
    assert example_session.product == Product()
    assert example_session.selections == {}
    assert example_session.undo()
    assert example_session.selections == {"1": "HI"}
