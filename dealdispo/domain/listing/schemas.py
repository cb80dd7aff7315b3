"""Listing domain schemas - partial updates sent by the wizard"""

from typing import Optional

from pydantic import ConfigDict, field_validator

from ...utils.sanitization import format_currency
from .models import (
    CompProperty,
    ConditionItem,
    ContactInfo,
    EmailContent,
    FormState,
    InvestmentDetails,
    ItemType,
    ListingModel,
    MediaAsset,
    PropertyRecord,
)


class PropertyUpdate(ListingModel):
    address: Optional[str] = None
    square_footage: Optional[str] = None
    bedrooms: Optional[str] = None
    baths: Optional[str] = None
    lot_size: Optional[str] = None
    year_built: Optional[str] = None
    market_value: Optional[str] = None
    arv: Optional[str] = None
    sale_price: Optional[str] = None
    occupancy: Optional[str] = None

    @field_validator("market_value", "arv", "sale_price", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        return None if v is None else format_currency(v)


class InvestmentUpdate(ListingModel):
    repair_costs: Optional[str] = None
    profit_margin: Optional[str] = None
    comparable_properties: Optional[str] = None
    market_trends: Optional[str] = None

    @field_validator("repair_costs", "profit_margin", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        return None if v is None else format_currency(v)


class ContentUpdate(ListingModel):
    subject: Optional[str] = None
    custom_message: Optional[str] = None
    footer_message: Optional[str] = None
    logo_url: Optional[str] = None
    phone_number: Optional[str] = None


class ContactUpdate(ListingModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    approved: Optional[bool] = None


class DraftUpdate(ListingModel):
    """Any subset of the editable sections"""

    listing: Optional[PropertyUpdate] = None
    investment: Optional[InvestmentUpdate] = None
    content: Optional[ContentUpdate] = None
    contact: Optional[ContactUpdate] = None


class ItemUpdate(ListingModel):
    name: Optional[str] = None
    category: Optional[str] = None
    type: Optional[ItemType] = None
    checked: Optional[bool] = None
    year: Optional[str] = None
    details: Optional[str] = None


class CompsReplace(ListingModel):
    comps: list[CompProperty]


class SendRequest(ListingModel):
    list_id: Optional[str] = None


class TemplateRequest(ListingModel):
    """
    Flat payload for one-off rendering; clients send only the fields that
    have values, so anything omitted renders as absent rather than as
    sample data.
    """

    model_config = ConfigDict(extra="forbid")

    main_image: str = ""
    gallery_images: list[str] = []
    address: str = ""
    square_footage: str = ""
    bedrooms: str = ""
    baths: str = ""
    lot_size: str = ""
    year_built: str = ""
    market_value: str = ""
    arv: str = ""
    sale_price: str = ""
    occupancy: str = ""
    repair_costs: str = ""
    profit_margin: str = ""
    comparable_properties: str = ""
    market_trends: str = ""
    subject: str = ""
    custom_message: str = ""
    footer_message: str = ""
    logo_url: str = ""
    phone_number: str = ""
    items: list[ConditionItem] = []
    comps: list[CompProperty] = []

    def to_form_state(self) -> FormState:
        return FormState(
            listing=PropertyRecord(
                address=self.address,
                square_footage=self.square_footage,
                bedrooms=self.bedrooms,
                baths=self.baths,
                lot_size=self.lot_size,
                year_built=self.year_built,
                market_value=self.market_value,
                arv=self.arv,
                sale_price=self.sale_price,
                occupancy=self.occupancy,
            ),
            investment=InvestmentDetails(
                repair_costs=self.repair_costs,
                profit_margin=self.profit_margin,
                comparable_properties=self.comparable_properties,
                market_trends=self.market_trends,
            ),
            content=EmailContent(
                subject=self.subject,
                custom_message=self.custom_message,
                footer_message=self.footer_message,
                logo_url=self.logo_url,
                phone_number=self.phone_number,
            ),
            contact=ContactInfo(),
            main_image=MediaAsset(url=self.main_image, kind="main") if self.main_image.strip() else None,
            gallery_images=[MediaAsset(url=url) for url in self.gallery_images if url.strip()],
            items=self.items,
            comps=self.comps,
        )
