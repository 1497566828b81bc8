from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator

HOUR_MS = 60 * 60 * 1000


# ── Closed variants ──────────────────────────────────────────────────────────

class Theme(str, Enum):
    CLEAN  = "clean"
    NEON   = "neon"
    SUNSET = "sunset"
    BLACK  = "black"
    HEAVIE = "heavie"


class Role(str, Enum):
    ADMIN   = "admin"
    KITCHEN = "kitchen"
    GUEST   = "guest"


class OrderStatus(str, Enum):
    PENDING   = "pending"
    PREPARING = "preparing"
    READY     = "ready"
    DELIVERED = "delivered"


# Forward-only pipeline; delivered absorbs further advances.
NEXT_STATUS = {
    OrderStatus.PENDING:   OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY:     OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: OrderStatus.DELIVERED,
}


def _strip_required(v: str) -> str:
    if not v.strip():
        raise ValueError("Field cannot be empty")
    return v.strip()


# ── Stored entities ──────────────────────────────────────────────────────────

class EventConfig(BaseModel):
    id: str
    name: str
    location: str
    date: str                     # display date only
    theme: Theme = Theme.NEON
    start_time: int               # epoch ms
    duration_hours: float = 5

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("duration_hours")
    @classmethod
    def duration_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Duration must be positive")
        return v

    @property
    def end_time(self) -> int:
        return self.start_time + int(self.duration_hours * HOUR_MS)

    def has_ended(self, now_ms: int) -> bool:
        return now_ms > self.end_time


class Drink(BaseModel):
    id: str
    name: str
    short_desc: str = ""
    description: str = ""         # sensory description
    ingredients: List[str] = []
    image_url: str = ""
    cost: int = 1

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("cost")
    @classmethod
    def cost_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Cost must be at least 1 coin")
        return v


class User(BaseModel):
    id: str
    name: str
    role: Role
    coins: int = 0
    event_id: str = ""

    @field_validator("coins")
    @classmethod
    def coins_must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Coin balance cannot be negative")
        return v


class Order(BaseModel):
    """Drink and user fields are snapshots taken when the order was placed."""
    id: str
    drink_id: str
    drink_name: str
    drink_image: str
    user_id: str
    user_name: str
    status: OrderStatus = OrderStatus.PENDING
    timestamp: int


class CoinCode(BaseModel):
    code: str
    amount: int
    redeemed_by: List[str] = []
    max_redemptions: int = 9999   # 0 = unbounded

    @field_validator("code")
    @classmethod
    def code_is_upper(cls, v: str) -> str:
        return _strip_required(v).upper()

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Amount must be at least 1")
        return v

    @field_validator("max_redemptions")
    @classmethod
    def cap_must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Redemption cap cannot be negative")
        return v

    @property
    def exhausted(self) -> bool:
        return self.max_redemptions > 0 and len(self.redeemed_by) >= self.max_redemptions


# ── Requests / responses ─────────────────────────────────────────────────────

class GuestLogin(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)


class StaffLogin(BaseModel):
    name: str
    # Only used when the first admin login creates the event
    event_name: str = "Drinks Party"
    location:   str = "Main Bar"
    theme:      Theme = Theme.NEON

    @field_validator("name")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)


class SessionResponse(BaseModel):
    session_key: str
    user: User
    redirect: str


class MeResponse(BaseModel):
    user: User
    time_left_ms: Optional[int] = None


class EventUpdate(BaseModel):
    """Partial update: fields left as None keep their current value."""
    name:           Optional[str] = None
    location:       Optional[str] = None
    theme:          Optional[Theme] = None
    duration_hours: Optional[float] = None

    @field_validator("name")
    @classmethod
    def must_not_be_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip() if v else v

    @field_validator("duration_hours")
    @classmethod
    def duration_must_be_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Duration must be positive")
        return v


class DrinkCreate(BaseModel):
    name: str
    short_desc:  Optional[str] = None
    description: Optional[str] = None
    ingredients: List[str] = []
    image_url:   Optional[str] = None
    cost: int = 1

    @field_validator("name")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("ingredients")
    @classmethod
    def drop_blank_ingredients(cls, v: List[str]) -> List[str]:
        return [i.strip() for i in v if i.strip()]

    @field_validator("cost")
    @classmethod
    def cost_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Cost must be at least 1 coin")
        return v


class DrinkUpdate(BaseModel):
    """Partial update: fields left as None keep their current value."""
    name:        Optional[str] = None
    short_desc:  Optional[str] = None
    description: Optional[str] = None
    ingredients: Optional[List[str]] = None
    image_url:   Optional[str] = None
    cost:        Optional[int] = None

    @field_validator("name")
    @classmethod
    def must_not_be_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip() if v else v

    @field_validator("cost")
    @classmethod
    def cost_must_be_positive(cls, v):
        if v is not None and v < 1:
            raise ValueError("Cost must be at least 1 coin")
        return v


class DescribeRequest(BaseModel):
    name: str
    ingredients: List[str]

    @field_validator("ingredients")
    @classmethod
    def needs_ingredients(cls, v: List[str]) -> List[str]:
        v = [i.strip() for i in v if i.strip()]
        if not v:
            raise ValueError("Add at least one ingredient first")
        return v


class DescribeResponse(BaseModel):
    description: str


class CoinCodeCreate(BaseModel):
    amount: int = Field(..., description="Coins credited per redemption")
    code: Optional[str] = None


class CoinCodeResponse(BaseModel):
    code: str
    amount: int
    redeemed_by: List[str]
    redemptions: int


class RedeemRequest(BaseModel):
    code: str


class RedeemResponse(BaseModel):
    amount: int
    coins: int
    message: str


class OrderCreate(BaseModel):
    drink_id: str
