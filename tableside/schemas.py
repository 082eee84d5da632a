"""
Pydantic Schemas for Request/Response Validation
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
import re


# =============================================================================
# AUTH
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


# =============================================================================
# CUSTOMER ORDERING
# =============================================================================

class CartLineIn(BaseModel):
    """
    One cart entry as sent by a customer client.

    ``price`` and ``name`` are accepted for convenience but never used for
    billing; prices are always re-read from the menu.
    """
    id: str = Field(..., min_length=1, examples=["3f2c4b1e-..."])
    quantity: int = Field(default=1, ge=1, le=99)
    name: Optional[str] = None
    price: Optional[float] = None


class CustomerDetails(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Asha"])
    phone: Optional[str] = Field(None, max_length=20, examples=["919876543210"])
    email: Optional[str] = Field(None, max_length=255)

    @field_validator("phone", "email", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not re.match(r'^[\w\.+-]+@[\w\.-]+\.\w+$', v):
            raise ValueError('Invalid email format')
        return v


class OrderSubmitRequest(BaseModel):
    """Body of ``POST /menu/{token}/orders``; omit ``items`` to order the stored cart."""
    customer: CustomerDetails
    items: Optional[List[CartLineIn]] = None


class OrderSubmitResponse(BaseModel):
    success: bool = True
    order_id: str


class CartAddRequest(BaseModel):
    item_id: str = Field(..., min_length=1)


class CartAdjustRequest(BaseModel):
    delta: int = Field(..., ge=-99, le=99)


# =============================================================================
# ADMIN REQUESTS
# =============================================================================

class StatusUpdateRequest(BaseModel):
    status: str


class CategoryCreate(BaseModel):
    name: str = Field(default="", max_length=100)
    sort_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    sort_order: Optional[int] = None


class TableCreate(BaseModel):
    name: str = Field(default="", max_length=50)


class PosterWrite(BaseModel):
    title: str = Field(default="", max_length=200)
    image_url: str = Field(default="", max_length=500)
    menu_item_id: Optional[str] = None
    sort_order: Optional[int] = None


class PosterToggle(BaseModel):
    is_active: bool


class RestaurantNameUpdate(BaseModel):
    restaurant_name: str = Field(default="", max_length=100)


class AIToggle(BaseModel):
    enabled: bool


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    sort_order: int


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category_id: str
    name: str
    description: str
    price: float
    image_url: Optional[str]
    is_available: bool
    tags: List[str] = []
    pairings: List[str] = []


class TableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    token: str
    qr_code_url: str
    created_at: datetime


class PublicTableResponse(BaseModel):
    """What a customer learns about the table they sit at."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class PosterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    image_url: str
    is_active: bool
    sort_order: int
    menu_item_id: Optional[str]
    menu_item_name: Optional[str] = None


class SettingsResponse(BaseModel):
    restaurant_name: str
    is_ai_enabled: bool


class OrderLineResponse(BaseModel):
    menu_item_id: Optional[str]
    name: str
    quantity: int
    price_at_time: float
    subtotal: float


class OrderResponse(BaseModel):
    """An order joined with its table name and line items."""
    id: str
    table_id: str
    table_name: Optional[str]
    customer_name: str
    customer_phone: Optional[str]
    customer_email: Optional[str]
    total_amount: float
    status: str
    version: int
    created_at: datetime
    updated_at: Optional[datetime]
    items: List[OrderLineResponse]


class MarkPaidResponse(BaseModel):
    success: bool = True
    whatsapp_url: Optional[str]
    receipt_text: str
    order: OrderResponse


class CustomerMenuResponse(BaseModel):
    table: PublicTableResponse
    settings: SettingsResponse
    categories: List[CategoryResponse]
    items: List[MenuItemResponse]
    posters: List[PosterResponse]


class AssistantResponse(BaseModel):
    enabled: bool
    query: str
    matches: List[str]
    scroll_to: Optional[str] = None


class CartLineResponse(BaseModel):
    id: str
    name: str
    price: float
    quantity: int


class CartResponse(BaseModel):
    items: List[CartLineResponse]
    total: float
    count: int
    pairing_suggestions: List[MenuItemResponse] = []


class PeriodStats(BaseModel):
    daily: float = 0.0
    weekly: float = 0.0
    monthly: float = 0.0
    total: float = 0.0


class PeriodCountStats(BaseModel):
    daily: int = 0
    weekly: int = 0
    monthly: int = 0
    total: int = 0


class CustomerStats(BaseModel):
    name: str
    phone: str
    total_orders: int
    total_spent: float
    last_visit: datetime


class AnalyticsResponse(BaseModel):
    revenue: PeriodStats
    orders: PeriodCountStats
    customers: List[CustomerStats]


class DashboardResponse(BaseModel):
    todays_revenue: float
    active_orders: int
    tables: int
    settings: SettingsResponse


class HealthResponse(BaseModel):
    status: str
    database: str
    change_feed: str
    cart_store: str
    image_storage: str
    notifier: str
    timestamp: datetime
