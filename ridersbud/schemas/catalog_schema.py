"""Service catalog, parts store, and marketing content models."""

from datetime import date
from typing import Optional

from pydantic import Field

from ridersbud.schemas.base_schema import StoredModel


class Service(StoredModel):
    """A bookable offering. A price of 0 means a quote is required."""
    id: str
    name: str
    description: str = ""
    price: float = Field(default=0.0, ge=0)
    estimated_time: str = ""
    image_url: str = ""
    category: str = ""
    icon: str = ""

    @property
    def requires_quote(self) -> bool:
        return self.price == 0

    @property
    def price_label(self) -> str:
        if self.requires_quote:
            return "Request Quote"
        return f"from ₱{self.price:,.0f}"


class Part(StoredModel):
    id: str
    name: str
    description: str = ""
    price: float = Field(ge=0)
    sales_price: Optional[float] = None
    image_url: str = ""
    category: str = ""
    sku: str = ""
    stock: int = Field(default=0, ge=0)


class CartItem(Part):
    quantity: int = Field(ge=1)


class Banner(StoredModel):
    id: str
    name: str
    description: str = ""
    image_url: str = ""
    link: str = ""
    category: str = "Services"
    start_date: date
    end_date: date


class FAQItem(StoredModel):
    question: str
    answer: str


class FAQCategory(StoredModel):
    category: str
    items: list[FAQItem] = Field(default_factory=list)
