"""
Constant Contact Service
Relays rendered listing emails to Constant Contact as scheduled campaigns.

Tokens live only in process memory. The access token is refreshed lazily
from the refresh token, under a lock so simultaneous requests share one
refresh instead of racing each other.
"""

import asyncio
import base64
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from ..config import (
    BUSINESS_ADDRESS_LINE1,
    BUSINESS_CITY,
    BUSINESS_COUNTRY_CODE,
    BUSINESS_POSTAL_CODE,
    BUSINESS_STATE,
    CONSTANT_CONTACT_ACCESS_TOKEN,
    CONSTANT_CONTACT_CLIENT_ID,
    CONSTANT_CONTACT_CLIENT_SECRET,
    CONSTANT_CONTACT_FROM_EMAIL,
    CONSTANT_CONTACT_FROM_NAME,
    CONSTANT_CONTACT_LIST_ID,
    CONSTANT_CONTACT_REDIRECT_URI,
    CONSTANT_CONTACT_REFRESH_TOKEN,
)

logger = logging.getLogger(__name__)

CONSTANT_CONTACT_AUTH_URL = "https://authz.constantcontact.com/oauth2/default/v1/authorize"
CONSTANT_CONTACT_TOKEN_URL = "https://authz.constantcontact.com/oauth2/default/v1/token"
CONSTANT_CONTACT_API_BASE = "https://api.cc.email/v3"
CONSTANT_CONTACT_SCOPE = "campaign_data contact_data offline_access"

# Campaigns go out five minutes after they are scheduled
SCHEDULE_DELAY = timedelta(minutes=5)
# Refresh a little before the reported expiry
EXPIRY_MARGIN = 60


class NotAuthenticatedError(Exception):
    """No usable Constant Contact credentials are available"""


class UpstreamError(Exception):
    """A Constant Contact call failed; carries the upstream status and body"""

    def __init__(self, message: str, status_code: int = 502, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body if body is not None else message


def _mask(token: Optional[str]) -> str:
    if not token:
        return "<none>"
    return f"{token[:6]}…"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def basic_auth_header(client_id: Optional[str], client_secret: Optional[str]) -> str:
    """Generate Basic Auth header for the OAuth token endpoint"""
    credentials = f"{client_id}:{client_secret}"
    return base64.b64encode(credentials.encode()).decode()


class TokenStore:
    """In-memory OAuth token holder with single-flight refresh"""

    def __init__(
        self,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        client_id: Optional[str] = CONSTANT_CONTACT_CLIENT_ID,
        client_secret: Optional[str] = CONSTANT_CONTACT_CLIENT_SECRET,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_at: Optional[float] = None
        self.client_id = client_id
        self.client_secret = client_secret
        self._transport = transport
        self._lock = asyncio.Lock()
        self.refresh_count = 0

    def _access_token_usable(self) -> bool:
        if not self.access_token:
            return False
        return self.expires_at is None or self.expires_at > time.time() + EXPIRY_MARGIN

    def store(self, token_data: dict) -> None:
        """Save a token endpoint response (code exchange or refresh)"""
        self.access_token = token_data.get("access_token")
        expires_in = token_data.get("expires_in")
        self.expires_at = time.time() + int(expires_in) if expires_in else None
        new_refresh_token = token_data.get("refresh_token")
        if new_refresh_token and new_refresh_token != self.refresh_token:
            self.refresh_token = new_refresh_token
            logger.warning(
                "New Constant Contact refresh token received - update CONSTANT_CONTACT_REFRESH_TOKEN "
                f"({_mask(new_refresh_token)})"
            )

    def invalidate(self) -> None:
        """Drop the cached access token so the next call refreshes"""
        self.access_token = None
        self.expires_at = None

    async def request_token(self, form: dict) -> dict:
        """POST a grant to the token endpoint and return the parsed response"""
        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http_client:
            response = await http_client.post(
                CONSTANT_CONTACT_TOKEN_URL,
                data=form,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Authorization": f"Basic {basic_auth_header(self.client_id, self.client_secret)}",
                },
            )
        if response.status_code != 200:
            body = _response_body(response)
            logger.error(f"❌ Constant Contact token request failed: {body}")
            raise UpstreamError("Failed to authenticate with Constant Contact", response.status_code, body)
        return response.json()

    async def exchange_code(self, code: str, redirect_uri: str = CONSTANT_CONTACT_REDIRECT_URI) -> dict:
        token_data = await self.request_token(
            {"grant_type": "authorization_code", "code": code, "redirect_uri": redirect_uri}
        )
        async with self._lock:
            self.store(token_data)
        logger.info("✅ Constant Contact authorization completed")
        return token_data

    async def get_valid_access_token(self) -> str:
        if self._access_token_usable():
            return self.access_token

        async with self._lock:
            # Another request may have refreshed while we waited
            if self._access_token_usable():
                return self.access_token

            if not self.refresh_token:
                raise NotAuthenticatedError(
                    "No access token available. Please authenticate first by visiting /auth/constantcontact"
                )

            logger.info("🔄 Refreshing Constant Contact access token...")
            token_data = await self.request_token(
                {"grant_type": "refresh_token", "refresh_token": self.refresh_token}
            )
            self.store(token_data)
            self.refresh_count += 1
            if not self.access_token:
                raise UpstreamError("No access token in refresh response", 502, token_data)
            logger.info("✅ Constant Contact token refreshed")
            return self.access_token


class OAuthStateStore:
    """One-time state values for the authorization redirect"""

    def __init__(self):
        self._states: set[str] = set()

    def add(self, state: str) -> None:
        self._states.add(state)

    def consume(self, state: Optional[str]) -> bool:
        if not state or state not in self._states:
            return False
        self._states.discard(state)
        return True


def physical_address() -> dict:
    """Footer address required by the platform for every campaign"""
    address = {
        "address_line1": BUSINESS_ADDRESS_LINE1,
        "city": BUSINESS_CITY,
        "state": BUSINESS_STATE,
        "postal_code": BUSINESS_POSTAL_CODE,
        "country_code": BUSINESS_COUNTRY_CODE,
    }
    return {k: v for k, v in address.items() if v}


def mailing_address_line() -> Optional[str]:
    """Single-line footer text for the rendered email"""
    if not BUSINESS_ADDRESS_LINE1:
        return None
    locality = " ".join(part for part in (BUSINESS_STATE, BUSINESS_POSTAL_CODE) if part)
    parts = [BUSINESS_ADDRESS_LINE1, BUSINESS_CITY, locality]
    return ", ".join(part for part in parts if part)


class ConstantContactService:
    """Create, address and schedule a custom-code email campaign"""

    def __init__(
        self,
        token_store: TokenStore,
        from_email: Optional[str] = CONSTANT_CONTACT_FROM_EMAIL,
        from_name: str = CONSTANT_CONTACT_FROM_NAME,
        default_list_id: str = CONSTANT_CONTACT_LIST_ID,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_store = token_store
        self.from_email = from_email
        self.from_name = from_name
        self.default_list_id = default_list_id
        self._transport = transport

    async def _call(
        self, http_client: httpx.AsyncClient, method: str, path: str, payload: dict, step: str
    ) -> Any:
        response = await http_client.request(method, f"{CONSTANT_CONTACT_API_BASE}{path}", json=payload)
        if response.status_code not in (200, 201, 202):
            body = _response_body(response)
            if response.status_code == 401:
                self.token_store.invalidate()
            logger.error(f"❌ Constant Contact {step} failed ({response.status_code}): {body}")
            raise UpstreamError(f"Constant Contact {step} failed", response.status_code, body)
        if not response.content:
            return {}
        return response.json()

    async def send_campaign(
        self, email_html: str, subject: Optional[str] = None, list_id: Optional[str] = None
    ) -> dict:
        """
        Create a campaign, attach the contact list and schedule it.

        Any failing step aborts the chain; a campaign created before the
        failure is left in place on the platform.

        Returns:
            Dict with campaignId, activityId, scheduleId and scheduledDate
        """
        subject = subject or "Property Details"
        list_id = list_id or self.default_list_id
        token = await self.token_store.get_valid_access_token()

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Cache-Control": "no-cache",
        }
        sender = {
            "from_email": self.from_email,
            "from_name": self.from_name,
            "reply_to_email": self.from_email,
            "subject": subject,
            "html_content": email_html,
        }

        async with httpx.AsyncClient(timeout=30.0, headers=headers, transport=self._transport) as http_client:
            logger.info("Starting email campaign creation...")
            created = await self._call(
                http_client,
                "POST",
                "/emails",
                {
                    "name": f"{subject} - {int(time.time() * 1000)}",
                    "email_campaign_activities": [{"format_type": 5, **sender}],
                    "physical_address_in_footer": physical_address(),
                },
                "campaign creation",
            )
            campaign_id = created.get("campaign_id")
            primary = next(
                (
                    activity
                    for activity in created.get("campaign_activities", [])
                    if activity.get("role") == "primary_email"
                ),
                None,
            )
            if not primary:
                raise UpstreamError("Primary email campaign activity not found", 502, created)
            activity_id = primary["campaign_activity_id"]
            logger.info(f"Email campaign created: {campaign_id} (activity {activity_id})")

            await self._call(
                http_client,
                "PUT",
                f"/emails/activities/{activity_id}",
                {"contact_list_ids": [list_id], **sender},
                "recipient update",
            )

            scheduled_date = (datetime.now(timezone.utc) + SCHEDULE_DELAY).isoformat()
            scheduled = await self._call(
                http_client,
                "POST",
                f"/emails/activities/{activity_id}/schedules",
                {"scheduled_date": scheduled_date},
                "scheduling",
            )

        schedule_id = None
        if isinstance(scheduled, list) and scheduled:
            schedule_id = scheduled[0].get("schedule_id")
        elif isinstance(scheduled, dict):
            schedule_id = scheduled.get("schedule_id")

        logger.info(f"✅ Campaign {campaign_id} scheduled for {scheduled_date}")
        return {
            "message": "Email campaign created and scheduled successfully",
            "campaignId": campaign_id,
            "activityId": activity_id,
            "scheduleId": schedule_id,
            "scheduledDate": scheduled_date,
        }


token_store = TokenStore(
    access_token=CONSTANT_CONTACT_ACCESS_TOKEN,
    refresh_token=CONSTANT_CONTACT_REFRESH_TOKEN,
)
oauth_states = OAuthStateStore()


def get_token_store() -> TokenStore:
    return token_store


def get_oauth_states() -> OAuthStateStore:
    return oauth_states


def get_constant_contact_service() -> ConstantContactService:
    """Dependency injection for ConstantContactService"""
    return ConstantContactService(token_store)
