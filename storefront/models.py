"""
Pydantic models for cart lines, catalog products, payment requests and responses.
"""
import json
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator
from typing import Any, Dict, List, Optional
from decimal import Decimal


class CartLine(BaseModel):
    """One product entry in the cart"""
    id: str = Field(..., description="Product identifier")
    name: str = Field(..., description="Display name")
    unit_price: Decimal = Field(..., ge=0, description="Price captured on first add")
    quantity: int = Field(1, ge=1, description="Item quantity")
    image: str = Field("", description="Image URI")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartItemRequest(BaseModel):
    """Request model for adding an item to the cart"""
    id: str = Field(..., description="Product identifier")
    name: str = Field(..., description="Display name")
    unit_price: Decimal = Field(..., ge=0, description="Product price")
    image: str = Field("", description="Image URI")
    # Accepted for compatibility; adding always counts as one unit
    quantity: Optional[int] = Field(None, description="Ignored")


class QuantityUpdateRequest(BaseModel):
    """Request model for setting a line's quantity"""
    quantity: int = Field(..., description="New quantity, clamped to at least 1")


class CartResponse(BaseModel):
    """Response model for cart retrieval"""
    cart_id: str = Field(..., description="Cart identifier")
    lines: List[CartLine] = Field(default_factory=list, description="Cart lines in insertion order")
    item_count: int = Field(0, description="Total number of units")
    subtotal: Decimal = Field(Decimal("0"), description="Sum of line totals")
    vat: Decimal = Field(Decimal("0"), description="VAT on the subtotal")
    total: Decimal = Field(Decimal("0"), description="Subtotal plus VAT")


class InitializeRequest(BaseModel):
    """Body accepted by the local payment initialization endpoint"""
    email: Optional[str] = None
    amount: Optional[StrictInt] = Field(None, description="Amount in minor units")
    ref: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    phone: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class InitializeResponse(BaseModel):
    """Only the access code is ever returned to the client"""
    access_code: str


class Product(BaseModel):
    """Catalog product, parsed leniently from the remote catalog"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str = ""
    price: Decimal = Decimal("0")
    category: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    quantity_in_stock: int = Field(0, alias="quantity")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("images", mode="before")
    @classmethod
    def normalize_images(cls, v: Any) -> Any:
        # The catalog sends a list, a JSON-encoded list, or a bare URL
        if isinstance(v, str):
            if v.strip().startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return []
            return [v] if v else []
        if v is None:
            return []
        return v

    @field_validator("name", "price", "category", "description", "images", "quantity_in_stock", mode="wrap")
    @classmethod
    def default_on_error(cls, v: Any, handler, info) -> Any:
        try:
            return handler(v)
        except ValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity_in_stock <= 0

    @property
    def primary_image(self) -> str:
        return self.images[0] if self.images else ""

    def to_cart_item(self) -> CartItemRequest:
        return CartItemRequest(
            id=self.id,
            name=self.name,
            unit_price=self.price,
            image=self.primary_image,
        )


class ProductPage(BaseModel):
    """One page of catalog results"""
    data: List[Product] = Field(default_factory=list)
    has_next_page: bool = False
