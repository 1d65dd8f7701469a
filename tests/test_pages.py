from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from pastestore.services.paste_service import PasteService

from .conftest import InMemoryStore


def _create(client: FlaskClient, **body) -> str:
    return client.post("/api/pastes", json=body).get_json()["id"]


def test_page_renders_sanitized_content(client: FlaskClient) -> None:
    paste_id = _create(
        client,
        content='<p onclick="x()">Hello</p><script>alert("pwned")</script>',
        max_views=2,
    )

    response = client.get(f"/p/{paste_id}")
    html = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "<p>Hello</p>" in html
    assert "pwned" not in html
    assert "onclick" not in html
    assert "1 view left" in html


def test_page_escapes_template_literal_breakouts(client: FlaskClient) -> None:
    paste_id = _create(client, content="cost: ${price} `tick`")

    html = client.get(f"/p/{paste_id}").get_data(as_text=True)

    assert "cost: \\${price} \\`tick\\`" in html


def test_page_view_counts_toward_limit(client: FlaskClient) -> None:
    paste_id = _create(client, content="one look", max_views=1)

    assert client.get(f"/p/{paste_id}").status_code == 200
    assert client.get(f"/api/pastes/{paste_id}").status_code == 404


def test_missing_paste_renders_not_found_page(client: FlaskClient) -> None:
    response = client.get("/p/nothingHere")

    assert response.status_code == 404
    assert "404 - Paste Not Found" in response.get_data(as_text=True)


def test_store_failure_renders_error_page(client: FlaskClient, store: InMemoryStore) -> None:
    paste_id = _create(client, content="x")
    store.available = False

    response = client.get(f"/p/{paste_id}")

    assert response.status_code == 500
    assert "500 - Internal Server Error" in response.get_data(as_text=True)


def test_unexpected_error_renders_error_page(
    client: FlaskClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def broken_fetch(self: PasteService, paste_id: str) -> dict:
        raise KeyError("content")

    monkeypatch.setattr(PasteService, "fetch_paste", broken_fetch)

    response = client.get("/p/abcd1234")

    assert response.status_code == 500
    assert "500 - Internal Server Error" in response.get_data(as_text=True)
