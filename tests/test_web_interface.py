"""Tests for the Flask web interface."""
import json


def test_index_redirects_to_scaler(client):
    response = client.get("/")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/scale")


def test_scale_page_get(client):
    response = client.get("/scale")
    assert response.status_code == 200
    assert b"Ingredient Scaler" in response.data
    assert b"1x" in response.data


def test_scale_page_increment(client):
    response = client.post("/scale", data={
        "ingredients": "1/2 cup sugar\nSalt to taste",
        "servings": "4",
        "scale": "1",
        "action": "increment",
    })
    body = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "1.5x (6 servings)" in body
    assert "3/4 cup sugar" in body
    assert "Salt to taste" in body
    assert 'value="reset"' in body


def test_scale_page_decrement_stops_at_floor(client):
    response = client.post("/scale", data={
        "ingredients": "2 eggs",
        "scale": "0.5",
        "action": "decrement",
    })
    body = response.get_data(as_text=True)
    assert "0.5x" in body
    assert "1 eggs" in body


def test_scale_page_shopping_list_selection(client):
    response = client.post("/scale", data={
        "ingredients": "1/2 cup sugar\n2 eggs\n3/4 tsp salt",
        "scale": "2",
        "action": "apply",
        "selected": ["2", "0", "9"],
    })
    body = response.get_data(as_text=True)
    assert "Shopping List (2 items)" in body
    assert "• 1 cup sugar\n• 1 1/2 tsp salt" in body


def test_scale_page_invalid_form(client):
    response = client.post("/scale", data={"ingredients": "2 eggs", "scale": "abc"})
    assert response.status_code == 400
    assert b"scale:" in response.data
    assert b"2 eggs" in response.data


def test_api_scale(client):
    response = client.post("/api/scale", json={
        "ingredients": ["1 1/2 cups flour", "2 eggs", "Salt to taste"],
        "scale_factor": 0.5,
        "servings": 4,
    })
    data = response.get_json()

    assert response.status_code == 200
    assert data["scaled_ingredients"] == ["3/4 cups flour", "1 eggs", "Salt to taste"]
    assert data["scaled_servings"] == 2
    assert data["original_servings"] == 4


def test_api_scale_repeated_request_uses_cache(client, web_interface):
    payload = {"ingredients": ["2 eggs"], "scale_factor": 2}
    client.post("/api/scale", json=payload)
    client.post("/api/scale", json=payload)
    assert web_interface.cache.get_stats().hit_count == 1


def test_api_scale_rejects_non_positive_factor(client):
    response = client.post("/api/scale", json={"ingredients": ["2 eggs"], "scale_factor": 0})
    error = response.get_json()["error"]

    assert response.status_code == 400
    assert error["category"] == "validation"
    assert any(message.startswith("scale_factor:") for message in error["validation_errors"])


def test_api_scale_requires_json_body(client):
    response = client.post("/api/scale", data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_api_scale_limits_ingredient_count(client):
    response = client.post("/api/scale", json={"ingredients": ["2 eggs"] * 6, "scale_factor": 1})
    assert response.status_code == 400
    assert "Too many ingredients" in response.get_json()["error"]["message"]


def test_api_shopping_list(client):
    response = client.post("/api/shopping-list", json={
        "ingredients": ["1/2 cup sugar", "2 eggs", "3/4 tsp salt"],
        "scale_factor": 2,
        "selected": [2, 0],
    })
    assert response.get_json() == {"text": "• 1 cup sugar\n• 1 1/2 tsp salt", "count": 2}


def test_api_shopping_list_counts_selected_lines(client):
    response = client.post("/api/shopping-list", json={
        "ingredients": ["1 cup sugar\u2028(fine)", "2 eggs\rlarge"],
        "scale_factor": 1,
        "selected": [0, 1, 1, 7],
    })
    assert response.get_json()["count"] == 2


def test_api_shopping_list_empty_selection(client):
    response = client.post("/api/shopping-list", json={"ingredients": ["2 eggs"], "scale_factor": 1})
    assert response.get_json() == {"text": "", "count": 0}


def test_api_export_markdown(client):
    response = client.post("/api/export", json={
        "ingredients": ["2 eggs"], "scale_factor": 1.5, "servings": 2, "format": "markdown",
    })
    assert response.status_code == 200
    assert response.mimetype == "text/markdown"
    assert "# Recipe for 3 servings" in response.get_data(as_text=True)
    assert "- 3 eggs" in response.get_data(as_text=True)


def test_api_export_json(client):
    response = client.post("/api/export", json={
        "ingredients": ["1/2 cup sugar"], "scale_factor": 2, "format": "json",
    })
    assert json.loads(response.get_data(as_text=True))["scaled_ingredients"] == ["1 cup sugar"]


def test_api_export_unknown_format(client):
    response = client.post("/api/export", json={
        "ingredients": ["2 eggs"], "scale_factor": 1, "format": "pdf",
    })
    assert response.status_code == 400
    assert "Unsupported format: pdf" in response.get_json()["error"]["message"]


def test_print_shopping_list_from_form(client):
    response = client.post("/shopping-list/print", data={
        "ingredients": "1/2 cup sugar\n2 eggs",
        "scale": "2",
        "selected": ["1"],
    })
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "<h1>Shopping List</h1>" in body
    assert "• 4 eggs" in body
    assert "sugar" not in body


def test_print_shopping_list_from_json(client):
    response = client.post("/shopping-list/print", json={
        "ingredients": ["3/4 tsp salt"], "scale_factor": 2, "selected": [0],
    })
    assert "• 1 1/2 tsp salt" in response.get_data(as_text=True)


def test_health_and_metrics(client):
    health = client.get("/health").get_json()
    assert health["status"] in ("healthy", "degraded")

    client.post("/api/scale", json={"ingredients": ["2 eggs"], "scale_factor": 2})
    metrics = client.get("/metrics").get_data(as_text=True)
    assert "ingredient_scale_requests_total" in metrics
    assert "http_requests_total" in metrics


def test_not_found_responses(client):
    assert client.get("/api/missing").get_json() == {"error": "Not found"}
    response = client.get("/missing")
    assert response.status_code == 404
    assert b"Page not found" in response.data
