import json

import httpx
import pytest

from dealdispo.services.constant_contact_service import (
    ConstantContactService,
    OAuthStateStore,
    TokenStore,
    get_constant_contact_service,
    get_oauth_states,
    get_token_store,
)


def fake_constant_contact(calls, fail_status=None):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        path = request.url.path
        if path == "/v3/emails":
            if fail_status:
                return httpx.Response(fail_status, json=[{"error_key": "campaign.invalid"}])
            return httpx.Response(
                201,
                json={
                    "campaign_id": "camp-7",
                    "campaign_activities": [{"campaign_activity_id": "act-7", "role": "primary_email"}],
                },
            )
        if path.endswith("/schedules"):
            return httpx.Response(201, json=[{"schedule_id": "sched-7"}])
        return httpx.Response(200, json={})

    return handler


@pytest.fixture
def campaign_calls(app):
    calls = []
    service = ConstantContactService(
        TokenStore(access_token="live-token"),
        from_email="deals@example.com",
        default_list_id="list-default",
        transport=httpx.MockTransport(fake_constant_contact(calls)),
    )
    app.dependency_overrides[get_constant_contact_service] = lambda: service
    return calls


def test_generate_template_renders_only_posted_fields(client, auth_headers):
    response = client.post(
        "/generate-template",
        json={"salePrice": "", "address": "123 Main St"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    html = response.json()["html"]
    assert "123 Main St" in html
    assert "Sale Price" not in html
    assert "Beverly Hills" not in html
    assert "Market Value" not in html
    assert "<title>Investment Property</title>" in html


def test_generate_template_accepts_flat_client_payload(client, auth_headers):
    response = client.post(
        "/generate-template",
        json={
            "address": "8 Pier Rd",
            "subject": "Pier deal",
            "marketValue": "410000",
            "bedrooms": "3",
            "baths": "2",
            "mainImage": "https://cdn.example.com/front.jpg",
            "galleryImages": ["https://cdn.example.com/kitchen.jpg"],
            "items": [
                {"id": "roof", "name": "Roof", "category": "Exterior", "type": "repair", "checked": True, "year": "2019"}
            ],
        },
        headers=auth_headers,
    )
    html = response.json()["html"]
    assert "<title>Pier deal</title>" in html
    assert "$410,000" in html
    assert "3 bed / 2 bath" in html
    assert "https://cdn.example.com/front.jpg" in html
    assert "https://cdn.example.com/kitchen.jpg" in html
    assert "Roof" in html


def test_generate_template_rejects_unknown_keys(client, auth_headers):
    response = client.post(
        "/generate-template",
        json={"listing": {"address": "8 Pier Rd"}},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_send_email_requires_html(client, auth_headers, campaign_calls):
    response = client.post("/api/send-email", json={"subject": "x"}, headers=auth_headers)
    assert response.status_code == 400
    assert campaign_calls == []


def test_send_email_schedules_campaign(client, auth_headers, campaign_calls):
    response = client.post(
        "/api/send-email",
        json={"emailHtml": "<html>deal</html>", "subject": "Deal", "listId": "list-9"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert (body["campaignId"], body["activityId"], body["scheduleId"]) == ("camp-7", "act-7", "sched-7")
    assert json.loads(campaign_calls[1].content)["contact_list_ids"] == ["list-9"]


def test_upstream_error_is_passed_through(app, client, auth_headers):
    service = ConstantContactService(
        TokenStore(access_token="live-token"),
        from_email="deals@example.com",
        transport=httpx.MockTransport(fake_constant_contact([], fail_status=400)),
    )
    app.dependency_overrides[get_constant_contact_service] = lambda: service
    response = client.post("/api/send-email", json={"emailHtml": "<p>x</p>"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {
        "error": "Failed to process email campaign",
        "details": [{"error_key": "campaign.invalid"}],
    }


def test_send_without_credentials_points_to_oauth(app, client, auth_headers):
    app.dependency_overrides[get_constant_contact_service] = lambda: ConstantContactService(TokenStore())
    response = client.post("/api/send-email", json={"emailHtml": "<p>x</p>"}, headers=auth_headers)
    assert response.status_code == 401
    assert "/auth/constantcontact" in response.json()["details"]


def test_oauth_redirect_and_callback(app, client):
    states = OAuthStateStore()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"access_token": "a-1", "refresh_token": "r-<1>", "expires_in": 3600}
        )

    tokens = TokenStore(transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_oauth_states] = lambda: states
    app.dependency_overrides[get_token_store] = lambda: tokens

    redirect = client.get("/auth/constantcontact", follow_redirects=False)
    assert redirect.status_code == 307
    location = httpx.URL(redirect.headers["location"])
    assert location.host == "authz.constantcontact.com"
    state = location.params["state"]
    assert location.params["scope"] == "campaign_data contact_data offline_access"

    assert client.get("/callback", params={"code": "c", "state": "forged"}).status_code == 400

    response = client.get("/callback", params={"code": "c", "state": state})
    assert response.status_code == 200
    assert "r-&lt;1&gt;" in response.text
    assert tokens.access_token == "a-1"

    # state values are single use
    assert client.get("/callback", params={"code": "c", "state": state}).status_code == 400
