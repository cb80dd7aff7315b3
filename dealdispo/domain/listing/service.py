"""Listing service - business logic for wizard drafts"""

import logging
from typing import Any, Optional

from fastapi import HTTPException

from .models import CampaignRecord, CompProperty, Draft, MediaAsset, PaymentRecord
from .repository import DraftRepository
from .schemas import DraftUpdate, ItemUpdate
from .wizard import InvalidTransitionError, StepNavigator, WizardStep

logger = logging.getLogger(__name__)

# DraftUpdate section -> FormState attribute
EDITABLE_SECTIONS = ("listing", "investment", "content", "contact")


class DraftService:
    """Service layer for draft business logic"""

    def __init__(self, repo: DraftRepository, navigator: Optional[StepNavigator] = None):
        self.repo = repo
        self.navigator = navigator or StepNavigator()

    def create_draft(self) -> Draft:
        draft = self.repo.add(Draft())
        logger.info(f"📥 Created draft {draft.id}")
        return draft

    def get_draft(self, draft_id: str) -> Draft:
        draft = self.repo.get(draft_id)
        if not draft:
            raise HTTPException(status_code=404, detail="Draft not found")
        return draft

    def delete_draft(self, draft_id: str) -> dict:
        if not self.repo.delete(draft_id):
            raise HTTPException(status_code=404, detail="Draft not found")
        logger.info(f"🗑️ Deleted draft {draft_id}")
        return {"message": "Draft deleted successfully"}

    # ========================================================================
    # FORM STATE
    # ========================================================================

    def update_draft(self, draft_id: str, data: DraftUpdate) -> Draft:
        """Merge the provided fields into the draft's sections"""
        draft = self.get_draft(draft_id)
        state = draft.state
        for section in EDITABLE_SECTIONS:
            changes = getattr(data, section)
            if changes is None:
                continue
            current = getattr(state, section)
            merged = {**current.model_dump(), **changes.model_dump(exclude_none=True)}
            setattr(state, section, type(current).model_validate(merged))
        return self.repo.save(draft)

    def update_item(self, draft_id: str, item_id: str, data: ItemUpdate) -> Draft:
        draft = self.get_draft(draft_id)
        for position, item in enumerate(draft.state.items):
            if item.id == item_id:
                merged = {**item.model_dump(), **data.model_dump(exclude_none=True)}
                draft.state.items[position] = type(item).model_validate(merged)
                return self.repo.save(draft)
        raise HTTPException(status_code=404, detail="Item not found")

    def replace_comps(self, draft_id: str, comps: list[CompProperty]) -> Draft:
        draft = self.get_draft(draft_id)
        draft.state.comps = list(comps)
        return self.repo.save(draft)

    # ========================================================================
    # IMAGES
    # ========================================================================

    def set_main_image(self, draft_id: str, asset: MediaAsset) -> Draft:
        draft = self.get_draft(draft_id)
        draft.state.main_image = asset
        return self.repo.save(draft)

    def set_gallery_image(self, draft_id: str, index: int, asset: MediaAsset, append: bool = False) -> Draft:
        """
        Store an uploaded gallery image.

        `append` comes from check_gallery_index before the upload started.
        A replacement whose slot disappeared meanwhile is a 409.
        """

        def change(draft: Draft):
            gallery = draft.state.gallery_images
            if append:
                gallery.append(asset)
            elif 0 <= index < len(gallery):
                gallery[index] = asset
            else:
                raise HTTPException(status_code=409, detail="Gallery changed during upload, please retry")

        draft = self.repo.update(draft_id, change)
        if draft is None:
            raise HTTPException(status_code=404, detail="Draft not found")
        return draft

    def check_gallery_index(self, draft_id: str, index: int) -> bool:
        """404 unless `index` is an existing slot or the next one; True when it appends"""
        gallery = self.get_draft(draft_id).state.gallery_images
        if index < 0 or index > len(gallery):
            raise HTTPException(status_code=404, detail="Gallery image not found")
        return index == len(gallery)

    def remove_gallery_image(self, draft_id: str, index: int) -> Draft:
        def change(draft: Draft):
            gallery = draft.state.gallery_images
            if index < 0 or index >= len(gallery):
                raise HTTPException(status_code=404, detail="Gallery image not found")
            del gallery[index]

        draft = self.repo.update(draft_id, change)
        if draft is None:
            raise HTTPException(status_code=404, detail="Draft not found")
        return draft

    # ========================================================================
    # NAVIGATION
    # ========================================================================

    def advance(self, draft_id: str) -> Draft:
        draft = self.get_draft(draft_id)
        previous = draft.step
        self.navigator.advance(draft)
        logger.info(f"Draft {draft_id}: {previous.value} -> {draft.step.value}")
        return self.repo.save(draft)

    def back(self, draft_id: str) -> Draft:
        draft = self.get_draft(draft_id)
        self.navigator.back(draft)
        return self.repo.save(draft)

    def return_to_preview(self, draft_id: str) -> Draft:
        draft = self.get_draft(draft_id)
        self.navigator.return_to_preview(draft)
        return self.repo.save(draft)

    # ========================================================================
    # PAYMENT AND SEND
    # ========================================================================

    def require_step(self, draft: Draft, step: WizardStep) -> None:
        if draft.step != step:
            raise InvalidTransitionError(
                f"Draft is on '{draft.step.value}', this action needs '{step.value}'"
            )

    def ready_for_payment(self, draft_id: str) -> Draft:
        draft = self.get_draft(draft_id)
        self.require_step(draft, WizardStep.PAYMENT)
        if draft.payment.is_settled:
            raise HTTPException(status_code=409, detail="Draft is already paid")
        return draft

    def record_payment(self, draft_id: str, payment: PaymentRecord) -> Draft:
        draft = self.get_draft(draft_id)
        draft.payment = payment
        logger.info(f"💳 Draft {draft_id} payment {payment.status.value} ({payment.amount} cents)")
        return self.repo.save(draft)

    def ready_to_send(self, draft_id: str) -> Draft:
        draft = self.get_draft(draft_id)
        self.require_step(draft, WizardStep.SEND)
        if draft.campaign is not None:
            raise HTTPException(status_code=409, detail="Campaign already sent for this draft")
        return draft

    def begin_payment(self, draft_id: str) -> Draft:
        """Check the draft can be charged and hold it until finish_action"""
        draft = self.ready_for_payment(draft_id)
        if not self.repo.claim(draft_id, "payment"):
            raise HTTPException(status_code=409, detail="Payment already in progress for this draft")
        return draft

    def begin_send(self, draft_id: str) -> Draft:
        """Check the draft can be sent and hold it until finish_action"""
        draft = self.ready_to_send(draft_id)
        if not self.repo.claim(draft_id, "send"):
            raise HTTPException(status_code=409, detail="Campaign send already in progress for this draft")
        return draft

    def finish_action(self, draft_id: str, action: str) -> None:
        self.repo.release(draft_id, action)

    def record_campaign(self, draft_id: str, result: dict[str, Any]) -> Draft:
        draft = self.get_draft(draft_id)
        draft.campaign = CampaignRecord(
            campaign_id=result.get("campaignId"),
            activity_id=result.get("activityId"),
            schedule_id=result.get("scheduleId"),
        )
        return self.repo.save(draft)


def draft_payload(draft: Draft) -> dict[str, Any]:
    """JSON body returned by every draft endpoint"""
    return {
        **draft.model_dump(by_alias=True, mode="json"),
        "itemsByCategory": {
            category: [item.model_dump(by_alias=True, mode="json") for item in items]
            for category, items in draft.state.items_by_category().items()
        },
    }
