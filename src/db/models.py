# dataclass models for table rows and the joined read views

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

OrderState = Literal["Pending", "Confirmed", "Shipping", "Completed", "Cancelled"]
ORDER_STATES = ("Pending", "Confirmed", "Shipping", "Completed", "Cancelled")


@dataclass
class Cart:
    # mutable: tracked rows are updated in place by CartRepository
    user_id: str
    product_id: str
    quantity: int


@dataclass(frozen=True)
class Product:
    product_id: str
    name_pr: str
    name_serial: Optional[str]
    detail: Optional[str]
    price: float
    quantity_pr: int  # stock
    guarantee_period: int  # months
    supplier_id: Optional[int]


@dataclass(frozen=True)
class Category:
    category_id: int
    category_name: str


@dataclass(frozen=True)
class Supplier:
    supplier_id: int
    supplier_name: str


@dataclass(frozen=True)
class Image:
    image_id: int
    product_id: str
    image_href: str


@dataclass(frozen=True)
class Discount:
    discount_id: int
    discount_code: str
    discount_value: float  # percent off


@dataclass(frozen=True)
class Order:
    order_id: str
    user_id: str
    full_name: str
    phone: str
    email: Optional[str]
    address: str
    note: Optional[str]
    total_price: float
    state: str
    discount_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class OrderDetail:
    order_id: str
    product_id: str
    quantity: int
    price: float  # unit price at time of order


# ---------------------------
# Read views
# ---------------------------


@dataclass(frozen=True)
class CartProduct:
    product: Product
    quantity: int
    category: Optional[Category]
    supplier: Optional[Supplier]
    image: Optional[Image]


@dataclass(frozen=True)
class OrderTableRow:
    order_id: str
    full_name: str
    phone: str
    created_at: datetime
    total_price: float
    state: str


@dataclass(frozen=True)
class OrderWithDiscount:
    order_id: str
    user_id: str
    full_name: str
    created_at: datetime
    total_price: float
    state: str
    discount_code: Optional[str]
    discount_value: Optional[float]


@dataclass(frozen=True)
class OrderLineRow:
    order_id: str
    created_at: datetime
    state: str
    product_id: str
    name_pr: str
    quantity: int
    price: float


@dataclass(frozen=True)
class UserOrderRow:
    order_id: str
    created_at: datetime
    state: str
    total_price: float
    item_count: int
