import math

from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Any, Dict, List, Optional
from decimal import Decimal
from datetime import datetime, date

from app.core import config
from app.models.enums.quotation_status import QuotationStatus
from app.services.billing.pricing_service import (
    PricedSpecification,
    QuotationTotals,
    price_specification,
)


def _clamp_non_negative(value: Any) -> float:
    """Missing, unparsable, non-finite or negative numbers resolve to 0."""
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _none_as_empty(value: Any) -> Any:
    return {} if value is None else value


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


# =====================================================
# WINDOW SPECIFICATION
# =====================================================

class Dimensions(BaseModel):
    width: float = 1000
    height: float = 1000
    bay_angle: float = 30

    @field_validator("width", "height", "bay_angle", mode="before")
    @classmethod
    def clamp(cls, v):
        return _clamp_non_negative(v)


class FrameOptions(BaseModel):
    material: str = "aluminum"
    color: str = "white"
    custom_color: str = ""

    @field_validator("material", "color", "custom_color", mode="before")
    @classmethod
    def text(cls, v):
        return _as_text(v)


class GrilleOptions(BaseModel):
    enabled: bool = False
    style: str = "rectangular"
    pattern: str = "grid"

    @field_validator("style", "pattern", mode="before")
    @classmethod
    def text(cls, v):
        return _as_text(v)


class WindowOptions(BaseModel):
    glass: str = "clear-5mm"
    glass_thickness: float = 5
    lock: str = "right-handle"
    lock_position: str = "right"
    opening_type: str = "horizontal"
    panels: int = 2
    tracks: int = 1
    fixed_panels: List[str] = Field(default_factory=list)
    grille: GrilleOptions = Field(default_factory=GrilleOptions)
    frame: FrameOptions = Field(default_factory=FrameOptions)
    screen_included: bool = False
    motorized: bool = False

    @field_validator("grille", "frame", mode="before")
    @classmethod
    def nested_defaults(cls, v):
        return _none_as_empty(v)

    @field_validator("glass", "lock", "lock_position", "opening_type", mode="before")
    @classmethod
    def text(cls, v):
        return _as_text(v)

    @field_validator("glass_thickness", mode="before")
    @classmethod
    def clamp(cls, v):
        return _clamp_non_negative(v)

    @field_validator("panels", "tracks", mode="before")
    @classmethod
    def clamp_count(cls, v):
        return int(_clamp_non_negative(v))


class PricingInput(BaseModel):
    base_price: float = 5000
    sqft_price: float = 450
    quantity: int = 1

    @field_validator("base_price", "sqft_price", mode="before")
    @classmethod
    def clamp(cls, v):
        return _clamp_non_negative(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def clamp_quantity(cls, v):
        return int(_clamp_non_negative(v))


class WindowSpecification(BaseModel):
    id: str = ""
    type: str = "sliding"
    name: str = ""
    location: str = ""
    dimensions: Dimensions = Field(default_factory=Dimensions)
    specifications: WindowOptions = Field(default_factory=WindowOptions)
    pricing: PricingInput = Field(default_factory=PricingInput)

    @field_validator("id", "type", "name", "location", mode="before")
    @classmethod
    def text(cls, v):
        return _as_text(v)

    @field_validator("dimensions", "specifications", "pricing", mode="before")
    @classmethod
    def nested_defaults(cls, v):
        return _none_as_empty(v)

    @computed_field
    @property
    def computed_values(self) -> PricedSpecification:
        return price_specification(self)


# =====================================================
# PARTIES
# =====================================================

class ClientInfo(BaseModel):
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("client name is required")
        return v


class CompanyDetails(BaseModel):
    name: str = config.COMPANY_NAME
    address: Optional[str] = config.COMPANY_ADDRESS or None
    phone: Optional[str] = config.COMPANY_PHONE
    email: Optional[str] = config.COMPANY_EMAIL
    website: Optional[str] = config.COMPANY_WEBSITE
    gstin: Optional[str] = config.COMPANY_GSTIN


# =====================================================
# QUOTATION CREATE / UPDATE
# =====================================================

class QuotationCreate(BaseModel):
    quotation_number: Optional[str] = None
    project: Optional[str] = None
    quotation_date: Optional[date] = None
    valid_until: Optional[date] = None
    client_info: ClientInfo
    company_details: Optional[CompanyDetails] = None
    window_specs: List[WindowSpecification] = Field(default_factory=list)
    transport_cost: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    loading_cost: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    gst_rate: Optional[float] = Field(None, ge=0, le=1, allow_inf_nan=False)
    notes: Optional[str] = None
    created_by: str = "System User"


class QuotationUpdate(BaseModel):
    project: Optional[str] = None
    quotation_date: Optional[date] = None
    valid_until: Optional[date] = None
    client_info: Optional[ClientInfo] = None
    company_details: Optional[CompanyDetails] = None
    window_specs: Optional[List[WindowSpecification]] = None
    transport_cost: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    loading_cost: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    gst_rate: Optional[float] = Field(None, ge=0, le=1, allow_inf_nan=False)
    notes: Optional[str] = None
    user_id: str = "System User"


class QuotationStatusUpdate(BaseModel):
    status: QuotationStatus
    user_id: str = "System User"


class QuotationActor(BaseModel):
    user_id: str = "System User"


# =====================================================
# BULK / COMPARE
# =====================================================

class QuotationIds(BaseModel):
    quotation_ids: List[int] = Field(..., min_length=1)

    @field_validator("quotation_ids")
    @classmethod
    def unique_ids(cls, v: List[int]) -> List[int]:
        return list(dict.fromkeys(v))


class QuotationBulkStatusUpdate(QuotationIds):
    status: QuotationStatus
    user_id: str = "System User"


class QuotationBulkResult(BaseModel):
    requested: int
    affected: int
    quotation_ids: List[int]


class QuotationCompareIn(BaseModel):
    quotation_ids: List[int] = Field(..., min_length=2, max_length=5)

    @field_validator("quotation_ids")
    @classmethod
    def distinct_ids(cls, v: List[int]) -> List[int]:
        if len(set(v)) != len(v):
            raise ValueError("quotation ids must be distinct")
        return v


# =====================================================
# PREVIEWS (no persistence)
# =====================================================

class WindowTypeChange(BaseModel):
    window: WindowSpecification
    type: str


class TotalsPreviewIn(BaseModel):
    window_specs: List[WindowSpecification] = Field(default_factory=list)
    transport_cost: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    loading_cost: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    gst_rate: Optional[float] = Field(None, ge=0, le=1, allow_inf_nan=False)


# =====================================================
# DOCUMENT INPUT (renderer boundary)
# =====================================================

class QuotationDocument(BaseModel):
    quotation_number: str
    project: Optional[str] = None
    quotation_date: date
    client_info: ClientInfo
    company_details: CompanyDetails = Field(default_factory=CompanyDetails)
    window_specs: List[WindowSpecification]
    transport_cost: float = Field(0.0, ge=0, allow_inf_nan=False)
    gst_rate: float = Field(0.18, ge=0, le=1)


# =====================================================
# QUOTATION RESPONSES
# =====================================================

class QuotationOut(BaseModel):
    id: int
    quotation_number: str
    project: Optional[str]
    quotation_date: date
    valid_until: date
    status: QuotationStatus

    client_info: ClientInfo
    company_details: CompanyDetails
    window_specs: List[WindowSpecification]

    transport_cost: float
    loading_cost: float
    gst_rate: float
    totals: QuotationTotals
    currency: str

    notes: Optional[str]
    created_by: str
    last_modified_by: Optional[str]
    submitted_date: Optional[datetime]
    pdf_generated: bool
    original_quotation_id: Optional[int] = None
    revision_of: Optional[str] = None

    created_at: datetime
    updated_at: Optional[datetime]


class QuotationListItem(BaseModel):
    id: int
    quotation_number: str
    client_name: str
    project: Optional[str]
    status: QuotationStatus
    items_count: int
    window_type: Optional[str]
    total_amount: Decimal
    quotation_date: date
    valid_until: date
    created_at: datetime

    class Config:
        from_attributes = True


class QuotationListData(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool
    items: List[QuotationListItem]


class QuotationStatusSummary(BaseModel):
    status: QuotationStatus
    count: int
    total_value: Decimal


class QuotationStatsOut(BaseModel):
    summary: List[QuotationStatusSummary]
    total_quotes: int
    recent_quotes: int


class CatalogOut(BaseModel):
    window_types: Dict[str, dict]
    glass_options: Dict[str, dict]
    frame_materials: Dict[str, dict]
    lock_options: Dict[str, dict]
    color_options: Dict[str, dict]
    grille_styles: List[str]


class ComparedValue(BaseModel):
    id: int
    quotation_number: str
    value: Any


class QuotationComparison(BaseModel):
    quotations: List[QuotationOut]
    differences: Dict[str, List[ComparedValue]]
    similarities: Dict[str, Any]


# =====================================================
# ANALYTICS
# =====================================================

class AnalyticsSummary(BaseModel):
    total: int
    by_status: Dict[str, int]
    total_value: Decimal
    avg_value: Decimal
    conversion_rate: float


class DailyTrend(BaseModel):
    day: date
    count: int
    total_value: Decimal


class ClientRanking(BaseModel):
    name: str
    count: int
    total_value: Decimal
    avg_value: Decimal


class WindowTypeShare(BaseModel):
    window_type: str
    count: int
    total_value: Decimal


class QuotationAnalyticsOut(BaseModel):
    summary: AnalyticsSummary
    daily_trends: List[DailyTrend]
    top_clients: List[ClientRanking]
    window_types: List[WindowTypeShare]
