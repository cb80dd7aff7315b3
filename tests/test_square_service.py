import asyncio
import json

import httpx
import pytest

from dealdispo.services.square_service import SQUARE_VERSION, PaymentError, SquarePaymentService


def test_create_payment_posts_amount_with_fresh_idempotency_key():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"payment": {"id": "pay-1", "status": "COMPLETED"}})

    service = SquarePaymentService("sq-token", "loc-1", "USD", transport=httpx.MockTransport(handler))
    asyncio.run(service.create_payment("cnon:card", 9950))
    asyncio.run(service.create_payment("cnon:card", 9950))

    first, second = (json.loads(c.content) for c in calls)
    assert first["amount_money"] == {"amount": 9950, "currency": "USD"}
    assert first["source_id"] == "cnon:card"
    assert first["location_id"] == "loc-1"
    assert first["idempotency_key"] != second["idempotency_key"]
    assert calls[0].headers["Square-Version"] == SQUARE_VERSION
    assert calls[0].headers["Authorization"] == "Bearer sq-token"


def test_declined_card_raises_with_upstream_body():
    body = {"errors": [{"category": "PAYMENT_METHOD_ERROR", "code": "CARD_DECLINED", "detail": "Card declined."}]}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(402, json=body)

    service = SquarePaymentService("sq-token", "loc-1", transport=httpx.MockTransport(handler))
    with pytest.raises(PaymentError, match="Card declined.") as exc:
        asyncio.run(service.create_payment("cnon:declined", 100))
    assert exc.value.status_code == 402
    assert exc.value.body == body


def test_unconfigured_square_fails_without_network():
    with pytest.raises(PaymentError) as exc:
        asyncio.run(SquarePaymentService(access_token=None).create_payment("cnon:card", 100))
    assert exc.value.status_code == 500
