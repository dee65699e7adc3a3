from pydantic import BaseModel, Field


class CartLine(BaseModel):
    """Cart line carried into checkout. Only selected lines count toward the order."""
    cart_item_id: int
    product_id: int
    quantity: int = Field(ge=1)
    selected_size: str | None = None
    unit_price: float = Field(ge=0)
    is_selected: bool = True

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


class PlaceOrderRequest(BaseModel):
    user_address_id: int
    payment_method_id: str  # "cod" | "card" | "momo" | "vnpay"
