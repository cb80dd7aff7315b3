import pytest


@pytest.fixture
def draft(client, auth_headers):
    response = client.post("/drafts", headers=auth_headers)
    assert response.status_code == 201
    return response.json()


def advance_to(client, auth_headers, draft_id, step):
    for _ in range(8):
        current = client.get(f"/drafts/{draft_id}", headers=auth_headers).json()["step"]
        if current == step:
            return
        if current == "preview":
            client.patch(
                f"/drafts/{draft_id}",
                json={
                    "contact": {
                        "name": "Jordan Investor",
                        "email": "jordan@example.com",
                        "phone": "904-555-0100",
                        "approved": True,
                    }
                },
                headers=auth_headers,
            )
        assert client.post(f"/drafts/{draft_id}/continue", headers=auth_headers).status_code == 200
    raise AssertionError(f"never reached {step}")


def test_new_draft_has_sample_defaults(draft):
    assert draft["step"] == "location"
    assert draft["state"]["listing"]["address"] == "123 Investment Avenue, Beverly Hills, CA 90210"
    assert draft["state"]["listing"]["marketValue"] == "$875,000"
    assert draft["payment"]["status"] == "unpaid"
    assert [item["name"] for item in draft["itemsByCategory"]["Exterior"]] == [
        "Roof",
        "Windows",
        "Large backyard",
    ]


def test_partial_update_normalises_currency(client, auth_headers, draft):
    response = client.patch(
        f"/drafts/{draft['id']}",
        json={"listing": {"salePrice": "250000", "address": "77 Bay St"}},
        headers=auth_headers,
    )
    assert response.status_code == 200
    listing = response.json()["state"]["listing"]
    assert listing["salePrice"] == "$250,000"
    assert listing["address"] == "77 Bay St"
    assert listing["bedrooms"] == "4"


def test_update_item_and_comps(client, auth_headers, draft):
    response = client.patch(
        f"/drafts/{draft['id']}/items/4",
        json={"checked": True, "year": "2021", "details": "Quartz counters"},
        headers=auth_headers,
    )
    kitchen = next(item for item in response.json()["state"]["items"] if item["id"] == "4")
    assert kitchen["checked"] is True
    assert kitchen["details"] == "Quartz counters"

    missing = client.patch(f"/drafts/{draft['id']}/items/99", json={"checked": True}, headers=auth_headers)
    assert missing.status_code == 404

    response = client.put(
        f"/drafts/{draft['id']}/comps",
        json={"comps": [{"address": "55 Oak Ln", "salePrice": "300000"}]},
        headers=auth_headers,
    )
    assert response.json()["state"]["comps"][0]["salePrice"] == "$300,000"


def test_location_gate_returns_field_names(client, auth_headers, draft):
    client.patch(f"/drafts/{draft['id']}", json={"listing": {"address": ""}}, headers=auth_headers)
    response = client.post(f"/drafts/{draft['id']}/continue", headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["fields"] == ["listing.address"]


def test_navigation_is_adjacent_only(client, auth_headers, draft):
    draft_id = draft["id"]
    assert client.post(f"/drafts/{draft_id}/back", headers=auth_headers).status_code == 409

    steps = []
    for _ in range(5):
        steps.append(client.post(f"/drafts/{draft_id}/continue", headers=auth_headers).json()["step"])
    assert steps == ["details", "condition", "investment", "images", "preview"]

    assert client.post(f"/drafts/{draft_id}/back", headers=auth_headers).json()["step"] == "images"
    assert client.post(f"/drafts/{draft_id}/return-to-preview", headers=auth_headers).status_code == 409


def test_preview_gate_then_return_from_payment(client, auth_headers, draft):
    draft_id = draft["id"]
    advance_to(client, auth_headers, draft_id, "preview")

    client.patch(
        f"/drafts/{draft_id}",
        json={"contact": {"name": "Jordan", "email": "jordan@example.com", "phone": "904-555-0100"}},
        headers=auth_headers,
    )
    blocked = client.post(f"/drafts/{draft_id}/continue", headers=auth_headers)
    assert blocked.status_code == 422
    assert blocked.json()["fields"] == ["contact.approved"]

    advance_to(client, auth_headers, draft_id, "payment")
    response = client.post(f"/drafts/{draft_id}/return-to-preview", headers=auth_headers)
    assert response.json()["step"] == "preview"


def test_preview_download_and_html(client, auth_headers, draft):
    draft_id = draft["id"]
    preview = client.get(f"/drafts/{draft_id}/preview", headers=auth_headers)
    assert preview.headers["content-type"].startswith("text/html")
    assert "123 Investment Avenue" in preview.text

    download = client.get(f"/drafts/{draft_id}/download", headers=auth_headers)
    assert 'filename="email-template.html"' in download.headers["content-disposition"]
    assert download.text.startswith("<!DOCTYPE html>")
    assert "100 Main St" in download.text

    html = client.get(f"/drafts/{draft_id}/html", headers=auth_headers).json()["html"]
    assert html == download.text


def test_unknown_and_deleted_drafts_return_404(client, auth_headers, draft):
    assert client.get("/drafts/does-not-exist", headers=auth_headers).status_code == 404
    assert client.delete(f"/drafts/{draft['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/drafts/{draft['id']}", headers=auth_headers).status_code == 404
