"""Listing domain models - form state for one investment email"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ...utils.sanitization import format_currency, is_empty_or_zero
from .wizard import WizardStep

DEFAULT_LOGO_URL = "https://staged.page/dealdispo/Dispo-Logo-Do-Not-Move-Delete.png"
DEFAULT_PHONE_NUMBER = "904-335-8553"
DEFAULT_SUBJECT = "Property Details"
DEFAULT_CUSTOM_MESSAGE = (
    "Welcome to this exceptional investment opportunity. This property offers a perfect blend "
    "of current income potential and future appreciation. With its prime location and strong "
    "market fundamentals, it represents an ideal addition to your investment portfolio."
)
DEFAULT_FOOTER_MESSAGE = (
    "This is an exclusive off-market investment opportunity.\nContact us for more information."
)


class ListingModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemType(str, Enum):
    FEATURE = "feature"
    REPAIR = "repair"


class ConditionItem(ListingModel):
    id: str
    name: str
    category: str
    type: ItemType
    checked: bool = False
    year: str = ""
    details: str = ""


class MediaAsset(ListingModel):
    url: str
    kind: str = "gallery"
    filename: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None


class CompProperty(ListingModel):
    address: str
    sale_price: str = ""
    sale_date: str = ""
    list_date: str = ""
    bedrooms: str = ""
    baths: str = ""
    square_footage: str = ""

    @field_validator("sale_price", mode="before")
    @classmethod
    def normalize_price(cls, v):
        return format_currency(v)


class PropertyRecord(ListingModel):
    address: str = "123 Investment Avenue, Beverly Hills, CA 90210"
    square_footage: str = "3,200 sq ft"
    bedrooms: str = "4"
    baths: str = "3"
    lot_size: str = "0.25 acres"
    year_built: str = "1985"
    market_value: str = "$875,000"
    arv: str = ""
    sale_price: str = ""
    occupancy: str = ""

    @field_validator("market_value", "arv", "sale_price", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        return format_currency(v)


class InvestmentDetails(ListingModel):
    repair_costs: str = ""
    profit_margin: str = ""
    comparable_properties: str = ""
    market_trends: str = ""

    @field_validator("repair_costs", "profit_margin", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        return format_currency(v)


class EmailContent(ListingModel):
    subject: str = DEFAULT_SUBJECT
    custom_message: str = DEFAULT_CUSTOM_MESSAGE
    footer_message: str = DEFAULT_FOOTER_MESSAGE
    logo_url: str = DEFAULT_LOGO_URL
    phone_number: str = DEFAULT_PHONE_NUMBER


class ContactInfo(ListingModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    approved: bool = False


def default_items() -> list[ConditionItem]:
    """Checklist every new draft starts with"""
    rows = [
        ("1", "Roof", ItemType.REPAIR, "Exterior"),
        ("2", "HVAC", ItemType.FEATURE, "Systems"),
        ("3", "Windows", ItemType.REPAIR, "Exterior"),
        ("4", "Kitchen", ItemType.FEATURE, "Interior"),
        ("5", "Bathrooms", ItemType.REPAIR, "Interior"),
        ("6", "Electrical", ItemType.REPAIR, "Systems"),
        ("7", "Plumbing", ItemType.REPAIR, "Systems"),
        ("8", "Large backyard", ItemType.FEATURE, "Exterior"),
    ]
    return [
        ConditionItem(id=item_id, name=name, type=item_type, category=category)
        for item_id, name, item_type, category in rows
    ]


class FormState(ListingModel):
    """Everything the investor has entered so far"""

    listing: PropertyRecord = Field(default_factory=PropertyRecord)
    investment: InvestmentDetails = Field(default_factory=InvestmentDetails)
    content: EmailContent = Field(default_factory=EmailContent)
    contact: ContactInfo = Field(default_factory=ContactInfo)
    main_image: Optional[MediaAsset] = None
    gallery_images: list[MediaAsset] = Field(default_factory=list)
    items: list[ConditionItem] = Field(default_factory=default_items)
    comps: list[CompProperty] = Field(default_factory=list)

    def checked_items(self) -> list[ConditionItem]:
        return [item for item in self.items if item.checked and item.name.strip()]

    def items_by_category(self) -> dict[str, list[ConditionItem]]:
        """All items grouped by category, in first-seen order"""
        grouped: dict[str, list[ConditionItem]] = {}
        for item in self.items:
            grouped.setdefault(item.category, []).append(item)
        return grouped

    def checked_items_by_type(self) -> dict[ItemType, list[ConditionItem]]:
        grouped: dict[ItemType, list[ConditionItem]] = {ItemType.FEATURE: [], ItemType.REPAIR: []}
        for item in self.checked_items():
            grouped[item.type].append(item)
        return grouped

    def bedrooms_baths(self) -> str:
        """Bed/bath summary when both counts are non-zero, otherwise empty"""
        bedrooms = self.listing.bedrooms.strip()
        baths = self.listing.baths.strip()
        if not is_empty_or_zero(bedrooms) and not is_empty_or_zero(baths):
            return f"{bedrooms} bed / {baths} bath"
        return ""


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    COMPLETED = "completed"
    WAIVED = "waived"


class PaymentRecord(ListingModel):
    status: PaymentStatus = PaymentStatus.UNPAID
    amount: int = 0
    discount_code: Optional[str] = None
    payment_id: Optional[str] = None

    @property
    def is_settled(self) -> bool:
        return self.status in (PaymentStatus.COMPLETED, PaymentStatus.WAIVED)


class CampaignRecord(ListingModel):
    campaign_id: Optional[str] = None
    activity_id: Optional[str] = None
    schedule_id: Optional[str] = None


class Draft(ListingModel):
    """One pass through the wizard; lives only in process memory"""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    state: FormState = Field(default_factory=FormState)
    step: WizardStep = WizardStep.LOCATION
    payment: PaymentRecord = Field(default_factory=PaymentRecord)
    campaign: Optional[CampaignRecord] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
