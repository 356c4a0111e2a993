"""
Streamlit UI for Product Management.

Features:
- Basic product information (name, description, base price)
- Up to four special fields with per-field pricing rules
- Dropdown option editor
- Live customer preview with price breakdown
"""
import logging

import pandas as pd
import streamlit as st

from product_pricing.config.settings import get_settings
from product_pricing.engine import FieldType, LimitExceeded, PricingModel
from product_pricing.services import ProductSession


st.set_page_config(
    page_title="Product Management",
    layout="wide",
    initial_sidebar_state="collapsed"
)


@st.cache_resource
def get_settings_cached():
    """Get cached settings."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    return settings


settings = get_settings_cached()

if 'product_session' not in st.session_state:
    st.session_state.product_session = ProductSession(settings=settings)

session: ProductSession = st.session_state.product_session
engine = session.engine

FIELD_TYPE_LABELS = {
    FieldType.TEXT: "Text",
    FieldType.NUMBER: "Number",
    FieldType.DROPDOWN: "Dropdown",
}
PRICING_MODEL_LABELS = {
    PricingModel.BASE: "Base price (fixed)",
    PricingModel.PER_CHARACTER: "Per character",
    PricingModel.PER_UNIT: "Per unit",
}


def money(amount) -> str:
    return engine.format_money(amount)


# ============================================================================
# HEADER
# ============================================================================
head_left, head_right = st.columns([4, 1])
with head_left:
    st.title("Product Management")
    st.caption("Configure your product with customizable special fields")
with head_right:
    if st.button("Load Example", use_container_width=True):
        session.load_example()
        st.toast("Sample product configuration has been loaded.")
        st.rerun()

product = session.product

# ============================================================================
# BASIC PRODUCT INFORMATION
# ============================================================================
with st.container(border=True):
    st.subheader("Basic Product Information")
    name = st.text_input("Product Name *", value=product.name, placeholder="Enter product name")
    description = st.text_area("Product Description", value=product.description, height=100)
    base_price = st.number_input(
        f"Base Price ({settings.currency_symbol}) *",
        min_value=0.0, step=0.01, value=float(product.base_price), format="%.2f",
    )
    enabled = st.checkbox(
        f"Enable Special Fields (up to {engine.max_special_fields} customizable fields)",
        value=product.special_fields_enabled,
    )
    if (name, description, base_price, enabled) != (
        product.name, product.description, float(product.base_price), product.special_fields_enabled
    ):
        session.update_product(
            name=name,
            description=description,
            base_price=str(base_price),
            special_fields_enabled=enabled,
        )
        st.rerun()

# ============================================================================
# SPECIAL FIELDS
# ============================================================================
if product.special_fields_enabled:
    with st.container(border=True):
        st.subheader(f"Special Fields ({len(product.special_fields)}/{engine.max_special_fields})")

        for index, field in enumerate(product.special_fields, start=1):
            with st.expander(f"Field {index}: {field.label or 'Untitled'}", expanded=True):
                key = f"field-{field.id}"
                updates = {}

                label = st.text_input("Field Label *", value=field.label, key=f"{key}-label")
                if label != field.label:
                    updates['label'] = label

                types = list(FIELD_TYPE_LABELS)
                field_type = st.selectbox(
                    "Special Field Type *", types, index=types.index(field.type),
                    format_func=FIELD_TYPE_LABELS.get, key=f"{key}-type",
                )
                if field_type != field.type:
                    updates['type'] = field_type

                if field.type != FieldType.DROPDOWN:
                    models = list(field.settings.allowed_models)
                    pricing_model = st.radio(
                        "Pricing Model", models, index=models.index(field.pricing_model),
                        format_func=PRICING_MODEL_LABELS.get, horizontal=True, key=f"{key}-model",
                    )
                    if pricing_model != field.pricing_model:
                        updates['pricing_model'] = pricing_model

                    price = st.number_input(
                        f"Base Price ({settings.currency_symbol}) *", min_value=0.0, step=0.01,
                        value=float(field.price), format="%.2f", key=f"{key}-price",
                    )
                    if price != float(field.price):
                        updates['price'] = str(price)

                    low, high = st.columns(2)
                    if field.type == FieldType.TEXT:
                        min_length = low.number_input(
                            "Minimum Length (optional)", min_value=0, step=1,
                            value=field.settings.min_length, key=f"{key}-minlen",
                        )
                        max_length = high.number_input(
                            "Maximum Length (optional)", min_value=0, step=1,
                            value=field.settings.max_length, key=f"{key}-maxlen",
                        )
                        if min_length != field.settings.min_length:
                            updates['min_length'] = min_length
                        if max_length != field.settings.max_length:
                            updates['max_length'] = max_length
                    else:
                        current_min = field.settings.min_value
                        current_max = field.settings.max_value
                        min_value = low.number_input(
                            "Minimum Value (optional)",
                            value=None if current_min is None else float(current_min), key=f"{key}-minval",
                        )
                        max_value = high.number_input(
                            "Maximum Value (optional)",
                            value=None if current_max is None else float(current_max), key=f"{key}-maxval",
                        )
                        if min_value != (None if current_min is None else float(current_min)):
                            updates['min_value'] = None if min_value is None else str(min_value)
                        if max_value != (None if current_max is None else float(current_max)):
                            updates['max_value'] = None if max_value is None else str(max_value)

                    st.info(f"Example: {engine.describe_pricing(field)}")
                else:
                    st.markdown("**Dropdown Options**")
                    for option in field.options:
                        opt_key = f"{key}-opt-{option.id}"
                        col_name, col_price, col_remove = st.columns([3, 1.2, 0.5])
                        opt_name = col_name.text_input(
                            "Option name", value=option.name, key=f"{opt_key}-name", label_visibility="collapsed",
                        )
                        opt_price = col_price.number_input(
                            "Price", min_value=0.0, step=0.01, value=float(option.price), format="%.2f",
                            key=f"{opt_key}-price", label_visibility="collapsed",
                        )
                        if opt_name != option.name or opt_price != float(option.price):
                            session.update_dropdown_option(
                                field.id, option.id, {'name': opt_name, 'price': str(opt_price)},
                            )
                            st.rerun()
                        if col_remove.button("🗑", key=f"{opt_key}-remove", disabled=len(field.options) <= 1):
                            session.remove_dropdown_option(field.id, option.id)
                            st.rerun()
                    if st.button("Add Option", key=f"{key}-add-option", use_container_width=True):
                        session.add_dropdown_option(field.id)
                        st.rerun()

                if updates:
                    session.update_special_field(field.id, updates)
                    st.rerun()

                if st.button("Remove Field", key=f"{key}-remove"):
                    session.remove_special_field(field.id)
                    st.rerun()

        if st.button("Add Special Field", disabled=not engine.can_add_special_field(product)):
            try:
                session.add_special_field()
                st.rerun()
            except LimitExceeded as e:
                st.error(e.message)

# ============================================================================
# CUSTOMER PREVIEW
# ============================================================================
with st.container(border=True):
    st.subheader("Customer Preview")
    st.markdown(f"### {product.name or 'Product Name'}")
    if product.description:
        st.caption(product.description)

    if product.special_fields_enabled:
        for field in product.special_fields:
            key = f"preview-{field.id}"
            current = session.selections.get(field.id)
            label = field.label or "Field Label"

            if field.type == FieldType.TEXT:
                value = st.text_input(label, value=current or "", max_chars=field.settings.max_length, key=key)
                if value != (current or ""):
                    session.set_selection(field.id, value)
                    st.rerun()
            elif field.type == FieldType.NUMBER:
                value = st.number_input(
                    label, value=None if current is None else float(current), step=1.0,
                    placeholder="Enter quantity", key=key,
                )
                if value != (None if current is None else float(current)):
                    try:
                        session.set_selection(field.id, value)
                        st.rerun()
                    except ValueError as e:
                        st.error(str(e))
            else:
                option_ids = [""] + [opt.id for opt in field.options]
                names = {opt.id: f"{opt.name or 'Unnamed Option'} (+{money(opt.price)})" for opt in field.options}
                choice = st.selectbox(
                    label, option_ids, index=option_ids.index(current) if current in option_ids else 0,
                    format_func=lambda opt_id: names.get(opt_id, "Select option"), key=key,
                )
                if choice != (current or ""):
                    session.set_selection(field.id, choice)
                    st.rerun()

    quote = session.quote()
    st.divider()
    st.markdown(f"Base Price: **{money(quote.base_price)}**")
    charged = [line for line in quote.lines if line.amount]
    if charged:
        breakdown = pd.DataFrame([
            {"Field": line.label or line.field_id, "Pricing": line.pricing_model.value, "Amount": float(line.amount)}
            for line in charged
        ])
        st.dataframe(breakdown, hide_index=True, use_container_width=True)
    st.metric("Total Price", money(quote.total))
    for warning in quote.warnings:
        st.warning(warning)

# ============================================================================
# ACTIONS
# ============================================================================
col_undo, col_redo, col_reset, col_save = st.columns(4)
if col_undo.button("Undo", disabled=not session.can_undo, use_container_width=True):
    session.undo()
    st.rerun()
if col_redo.button("Redo", disabled=not session.can_redo, use_container_width=True):
    session.redo()
    st.rerun()
if col_reset.button("Reset", use_container_width=True):
    session.reset()
    st.toast("All fields have been cleared.")
    st.rerun()
if col_save.button("Save Product", type="primary", use_container_width=True):
    result = session.save()
    if result.valid:
        st.success("Product configuration has been saved successfully.")
        with st.expander("Saved configuration"):
            st.json(session.saved_product.to_dict())
    else:
        st.error(f"Validation Error: {result.message}")
