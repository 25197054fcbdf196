"""Questionnaire definition: categories, their ordered fields, menus and texts.

Everything the dialogue engine asks is described here as data. Adding a
category or a field is a change to ``DEFAULT_FLOW``, not to the engine.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from app.models.conversation import StepId


class Branch(str, Enum):
    COMPLAINT = "complaint"
    ORDER = "order"


class FieldKind(str, Enum):
    FREE_TEXT = "free_text"  # any non-empty text
    PRODUCT_MENU = "product_menu"  # one of the product tokens


@dataclass(frozen=True)
class FieldStep:
    step: StepId
    name: str
    label: str
    prompt: str = ""
    kind: FieldKind = FieldKind.FREE_TEXT


@dataclass(frozen=True)
class ProductCategory:
    token: str
    title: str
    items: tuple[str, ...]


@dataclass(frozen=True)
class Category:
    key: str
    token: str
    title: str
    branch: Branch
    fields: tuple[FieldStep, ...]
    detail: FieldStep
    footer: str

    @property
    def is_order(self) -> bool:
        return self.branch == Branch.ORDER

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)


NAME_STEP = FieldStep(StepId.AWAITING_NAME, "name", "Name", "Please tell us your name.")
SALESMAN_STEP = FieldStep(StepId.AWAITING_SALESMAN, "salesman", "Salesman", "Please enter the salesman's name.")
SHOP_STEP = FieldStep(StepId.AWAITING_SHOP, "shop", "Shop", "Please enter your shop name.")
ADDRESS_STEP = FieldStep(StepId.AWAITING_ADDRESS, "address", "Address", "Please enter your shop address.")
PRODUCT_STEP = FieldStep(
    StepId.AWAITING_PRODUCT_CATEGORY,
    "product_category",
    "Product Category",
    kind=FieldKind.PRODUCT_MENU,
)
COMPLAINT_DETAIL_STEP = FieldStep(
    StepId.AWAITING_COMPLAINT_DETAIL,
    "detail",
    "Complaint",
    "Please describe your complaint in detail.",
)
ORDER_DETAIL_STEP = FieldStep(
    StepId.AWAITING_ORDER_DETAIL,
    "detail",
    "Order",
    "Please type your order with item names and quantities.",
)

COMPLAINT_FIELDS = (SALESMAN_STEP, SHOP_STEP, ADDRESS_STEP)

COMPLAINT_FOOTER = "For urgent complaints call our helpline: 0800-12345 (Mon-Sat, 9am-6pm)."
QUALITY_FOOTER = "For quality, price or billing queries call: 0800-12346 (Mon-Sat, 9am-6pm)."
ORDER_FOOTER = "Our order desk will confirm your order shortly. Order desk: 0300-1234567."

DEFAULT_RESET_KEYWORDS = frozenset(
    {
        "salam",
        "assalam o alaikum",
        "assalamualaikum",
        "aoa",
        "hi",
        "hello",
        "hy",
        "hey",
        "reset",
        "start",
        "menu",
    }
)

MSG_INVALID_OPTION = "Please choose a valid option."
MSG_TEXT_ONLY = "Sorry, we can only read text messages."
MSG_RESET_HINT = "Send *reset* at any time to start over."

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_keyword(text: Optional[str]) -> str:
    """Trim, case-fold, collapse inner whitespace and drop trailing punctuation."""
    normalized = _WHITESPACE_RE.sub(" ", (text or "").strip()).casefold()
    return normalized.rstrip("!.?, ")


@dataclass(frozen=True)
class FlowDefinition:
    categories: tuple[Category, ...]
    products: tuple[ProductCategory, ...]
    reset_keywords: frozenset[str] = DEFAULT_RESET_KEYWORDS
    business_name: str = "Customer Care"
    name_step: FieldStep = field(default=NAME_STEP)

    def with_business_name(self, business_name: str) -> "FlowDefinition":
        return replace(self, business_name=business_name)

    def is_reset(self, body: Optional[str]) -> bool:
        return normalize_keyword(body) in self.reset_keywords

    def category_for_token(self, token: Optional[str]) -> Optional[Category]:
        token = (token or "").strip()
        return next((c for c in self.categories if c.token == token), None)

    def category_by_key(self, key: Optional[str]) -> Optional[Category]:
        return next((c for c in self.categories if c.key == key), None)

    def product_for_token(self, token: Optional[str]) -> Optional[ProductCategory]:
        token = (token or "").strip()
        return next((p for p in self.products if p.token == token), None)

    def field_step(self, category: Optional[Category], step: StepId) -> Optional[FieldStep]:
        if step == self.name_step.step:
            return self.name_step
        if category is None:
            return None
        for candidate in (*category.fields, category.detail):
            if candidate.step == step:
                return candidate
        return None

    def menu_text(self) -> str:
        lines = [
            f"Assalam-o-Alaikum! Welcome to {self.business_name}.",
            "Please reply with the number of your choice:",
        ]
        lines.extend(f"{c.token}. {c.title}" for c in self.categories)
        lines.extend(["", MSG_RESET_HINT])
        return "\n".join(lines)

    def product_menu_text(self) -> str:
        lines = ["Which products would you like to order? Reply with a number:"]
        lines.extend(f"{p.token}. {p.title}" for p in self.products)
        return "\n".join(lines)

    def catalog_text(self, product: ProductCategory) -> str:
        lines = [f"*{product.title}* items available:"]
        lines.extend(f"- {item}" for item in product.items)
        return "\n".join(lines)

    def prompt_for(self, step: FieldStep) -> str:
        if step.kind == FieldKind.PRODUCT_MENU:
            return self.product_menu_text()
        return step.prompt


DEFAULT_FLOW = FlowDefinition(
    categories=(
        Category(
            key="salesman_complaint",
            token="1",
            title="Salesman Complaint",
            branch=Branch.COMPLAINT,
            fields=COMPLAINT_FIELDS,
            detail=COMPLAINT_DETAIL_STEP,
            footer=COMPLAINT_FOOTER,
        ),
        Category(
            key="distributor_complaint",
            token="2",
            title="Distributor Complaint",
            branch=Branch.COMPLAINT,
            fields=COMPLAINT_FIELDS,
            detail=COMPLAINT_DETAIL_STEP,
            footer=COMPLAINT_FOOTER,
        ),
        Category(
            key="quality_price_bill",
            token="3",
            title="Quality/Price/Bill",
            branch=Branch.COMPLAINT,
            fields=COMPLAINT_FIELDS,
            detail=COMPLAINT_DETAIL_STEP,
            footer=QUALITY_FOOTER,
        ),
        Category(
            key="stock_order",
            token="4",
            title="Stock Order",
            branch=Branch.ORDER,
            fields=(PRODUCT_STEP,),
            detail=ORDER_DETAIL_STEP,
            footer=ORDER_FOOTER,
        ),
    ),
    products=(
        ProductCategory(
            token="1",
            title="Ice Cream",
            items=("Cone", "Cup", "Stick", "Family Pack", "Tub"),
        ),
        ProductCategory(
            token="2",
            title="Beverages",
            items=("Juice 250ml", "Juice 1L", "Mineral Water", "Flavoured Milk"),
        ),
    ),
)
