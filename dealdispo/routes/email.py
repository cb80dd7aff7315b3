"""
Email Routes - stateless template rendering and campaign relay
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..auth import require_session
from ..domain.listing.schemas import TemplateRequest
from ..email_templates import render_investment_email
from ..services.constant_contact_service import (
    ConstantContactService,
    UpstreamError,
    get_constant_contact_service,
    mailing_address_line,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Email"], dependencies=[Depends(require_session)])


class SendEmailRequest(BaseModel):
    emailHtml: Optional[str] = None
    subject: Optional[str] = None
    listId: Optional[str] = None


@router.post("/generate-template")
async def generate_template(data: TemplateRequest):
    """Render the posted fields without creating a draft"""
    return {"html": render_investment_email(data.to_form_state(), mailing_address_line())}


@router.post("/api/send-email")
async def send_email(
    data: SendEmailRequest,
    service: ConstantContactService = Depends(get_constant_contact_service),
):
    """Create and schedule a campaign from already rendered HTML"""
    if not data.emailHtml or not data.emailHtml.strip():
        raise HTTPException(status_code=400, detail="Email HTML content is required")

    try:
        return await service.send_campaign(data.emailHtml, subject=data.subject, list_id=data.listId)
    except UpstreamError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": "Failed to process email campaign", "details": e.body},
        )
