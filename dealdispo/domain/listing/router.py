"""Listing router - FastAPI endpoints for the email wizard"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response

from ...auth import require_session
from ...email_templates import render_investment_email, render_preview
from ...services.constant_contact_service import (
    ConstantContactService,
    UpstreamError,
    get_constant_contact_service,
    mailing_address_line,
)
from ...services.image_host import accept_upload, get_image_host
from ...services.square_service import PaymentError
from ..billing.router import get_billing_service, payment_error_response
from ..billing.schemas import DraftPaymentRequest
from ..billing.service import BillingService
from .models import MediaAsset
from .repository import DraftRepository, get_draft_repository
from .schemas import CompsReplace, DraftUpdate, ItemUpdate, SendRequest
from .service import DraftService, draft_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["Drafts"], dependencies=[Depends(require_session)])


def get_draft_service(repo: DraftRepository = Depends(get_draft_repository)) -> DraftService:
    """Dependency injection for DraftService"""
    return DraftService(repo)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.post("", status_code=201)
async def create_draft(service: DraftService = Depends(get_draft_service)):
    """Start a new draft pre-filled with sample data"""
    return draft_payload(service.create_draft())


@router.get("/{draft_id}")
async def get_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    return draft_payload(service.get_draft(draft_id))


@router.patch("/{draft_id}")
async def update_draft(
    draft_id: str,
    data: DraftUpdate,
    service: DraftService = Depends(get_draft_service),
):
    """Update any subset of the property, investment, content and contact fields"""
    return draft_payload(service.update_draft(draft_id, data))


@router.delete("/{draft_id}")
async def delete_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    return service.delete_draft(draft_id)


@router.patch("/{draft_id}/items/{item_id}")
async def update_item(
    draft_id: str,
    item_id: str,
    data: ItemUpdate,
    service: DraftService = Depends(get_draft_service),
):
    """Check, rename or annotate one condition item"""
    return draft_payload(service.update_item(draft_id, item_id, data))


@router.put("/{draft_id}/comps")
async def replace_comps(
    draft_id: str,
    data: CompsReplace,
    service: DraftService = Depends(get_draft_service),
):
    return draft_payload(service.replace_comps(draft_id, data.comps))


# ============================================================================
# IMAGES
# ============================================================================


@router.post("/{draft_id}/images/main")
async def upload_main_image(
    draft_id: str,
    image: UploadFile = File(...),
    service: DraftService = Depends(get_draft_service),
    host=Depends(get_image_host),
):
    """Upload and set the hero image; the draft is untouched if the upload fails"""
    service.get_draft(draft_id)
    result = await accept_upload(image, "main", host)
    return draft_payload(service.set_main_image(draft_id, MediaAsset.model_validate(result)))


@router.post("/{draft_id}/images/gallery/{index}")
async def upload_gallery_image(
    draft_id: str,
    index: int,
    image: UploadFile = File(...),
    service: DraftService = Depends(get_draft_service),
    host=Depends(get_image_host),
):
    """Replace gallery slot `index`, or append when index equals the gallery size"""
    append = service.check_gallery_index(draft_id, index)
    result = await accept_upload(image, "gallery", host)
    asset = MediaAsset.model_validate(result)
    return draft_payload(service.set_gallery_image(draft_id, index, asset, append=append))


@router.delete("/{draft_id}/images/gallery/{index}")
async def delete_gallery_image(
    draft_id: str,
    index: int,
    service: DraftService = Depends(get_draft_service),
):
    return draft_payload(service.remove_gallery_image(draft_id, index))


# ============================================================================
# NAVIGATION
# ============================================================================


@router.post("/{draft_id}/continue")
async def continue_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    """Validate the current step and move one step forward"""
    return draft_payload(service.advance(draft_id))


@router.post("/{draft_id}/back")
async def back_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    return draft_payload(service.back(draft_id))


@router.post("/{draft_id}/return-to-preview")
async def return_to_preview(draft_id: str, service: DraftService = Depends(get_draft_service)):
    return draft_payload(service.return_to_preview(draft_id))


# ============================================================================
# RENDERING
# ============================================================================


@router.get("/{draft_id}/preview", response_class=HTMLResponse)
async def preview_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    return HTMLResponse(render_preview(service.get_draft(draft_id).state))


@router.get("/{draft_id}/download")
async def download_draft(draft_id: str, service: DraftService = Depends(get_draft_service)):
    """The finished email as a downloadable file"""
    html = render_investment_email(service.get_draft(draft_id).state, mailing_address_line())
    return Response(
        content=html,
        media_type="text/html",
        headers={"Content-Disposition": 'attachment; filename="email-template.html"'},
    )


@router.get("/{draft_id}/html")
async def draft_html(draft_id: str, service: DraftService = Depends(get_draft_service)):
    return {"html": render_investment_email(service.get_draft(draft_id).state, mailing_address_line())}


# ============================================================================
# PAYMENT AND SEND
# ============================================================================


@router.post("/{draft_id}/payment")
async def pay_for_draft(
    draft_id: str,
    data: DraftPaymentRequest,
    service: DraftService = Depends(get_draft_service),
    billing: BillingService = Depends(get_billing_service),
):
    """Charge the listing fee (less any discount) and mark the draft paid"""
    service.begin_payment(draft_id)
    try:
        payment = await billing.pay_for_draft(draft_id, data.sourceId, data.discountCode)
        return draft_payload(service.record_payment(draft_id, payment))
    except PaymentError as e:
        return payment_error_response(e)
    finally:
        service.finish_action(draft_id, "payment")


@router.post("/{draft_id}/send")
async def send_draft(
    draft_id: str,
    data: Optional[SendRequest] = None,
    service: DraftService = Depends(get_draft_service),
    campaigns: ConstantContactService = Depends(get_constant_contact_service),
):
    """Render the draft and schedule it as a Constant Contact campaign"""
    draft = service.begin_send(draft_id)
    try:
        html = render_investment_email(draft.state, mailing_address_line())
        result = await campaigns.send_campaign(
            html, subject=draft.state.content.subject, list_id=data.list_id if data else None
        )
        service.record_campaign(draft_id, result)
        return result
    except UpstreamError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": "Failed to process email campaign", "details": e.body},
        )
    finally:
        service.finish_action(draft_id, "send")
