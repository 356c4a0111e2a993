import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from product_pricing.api.main import app
from product_pricing.api.state import get_session
from product_pricing.config.settings import Settings
from product_pricing.services import ProductSession


@pytest.fixture(scope="function")
def client():
    """Client bound to a fresh editing session per test."""
    session = ProductSession(settings=Settings(project_root=Path(__file__).parent.parent))
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json()["status"] == "online"


def test_example_quote(client):
    """Loading the example and answering both fields prices at 31.50."""
    client.post("/api/product/example")
    client.put("/api/product/selections/1", json={"value": "HELLO"})
    state = client.put("/api/product/selections/2", json={"value": "opt3"}).json()

    assert state["total"] == 31.5
    assert state["selections"] == {"1": "HELLO", "2": "opt3"}

    quote = client.get("/api/product/quote").json()
    assert quote["total"] == 31.5
    assert [line["amount"] for line in quote["lines"]] == [2.5, 4.0]


def test_field_lifecycle(client):
    client.put("/api/product", json={"name": "Mug", "base_price": "10", "special_fields_enabled": True})
    state = client.post("/api/product/fields").json()
    field_id = state["product"]["specialFields"][0]["id"]

    state = client.patch(f"/api/product/fields/{field_id}", json={"label": "Colour", "type": "dropdown"}).json()
    field = state["product"]["specialFields"][0]
    assert field["type"] == "dropdown"
    assert len(field["dropdownOptions"]) == 1

    option_id = field["dropdownOptions"][0]["id"]
    state = client.patch(
        f"/api/product/fields/{field_id}/options/{option_id}", json={"name": "Blue", "price": "1.5"},
    ).json()
    assert state["product"]["specialFields"][0]["dropdownOptions"][0] == {"id": option_id, "name": "Blue", "price": 1.5}

    state = client.put(f"/api/product/selections/{field_id}", json={"value": option_id}).json()
    assert state["total"] == 11.5

    state = client.delete(f"/api/product/fields/{field_id}").json()
    assert state["product"]["specialFields"] == []
    assert state["selections"] == {}
    assert state["total"] == 10.0


def test_fifth_field_conflict(client):
    for _ in range(4):
        client.post("/api/product/fields")
    response = client.post("/api/product/fields")
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "limit_exceeded"


def test_unknown_selection_field(client):
    response = client.put("/api/product/selections/missing", json={"value": "x"})
    assert response.status_code == 404


def test_out_of_range_quantity_is_rejected(client):
    """An absurd quantity is refused and the quote keeps working."""
    client.post("/api/product/example")
    client.patch("/api/product/fields/1", json={"type": "number", "pricing_model": "perUnit", "price": "1"})

    response = client.put("/api/product/selections/1", json={"value": "1e30"})
    assert response.status_code == 422
    assert "between" in response.json()["detail"]

    response = client.get("/api/product/quote")
    assert response.status_code == 200
    assert response.json()["total"] == 25.0


def test_invalid_pricing_model_for_text_is_ignored(client):
    field_id = client.post("/api/product/fields").json()["product"]["specialFields"][0]["id"]
    state = client.patch(f"/api/product/fields/{field_id}", json={"pricing_model": "perUnit"}).json()
    assert state["product"]["specialFields"][0]["pricingModel"] == "base"


def test_save_reports_validation_failure(client):
    response = client.post("/api/product/save")
    assert response.status_code == 400
    assert response.json()["detail"]["rule"] == "name_required"

    validation = client.post("/api/product/validate").json()
    assert validation["valid"] is False

    client.put("/api/product", json={"name": "Mug"})
    response = client.post("/api/product/save")
    assert response.status_code == 200
    assert response.json()["product"]["name"] == "Mug"


def test_undo_and_reset(client):
    client.put("/api/product", json={"name": "Mug"})
    state = client.post("/api/product/undo").json()
    assert state["product"]["name"] == ""
    assert state["can_redo"] is True

    client.post("/api/product/example")
    state = client.post("/api/product/reset").json()
    assert state["product"]["specialFields"] == []
