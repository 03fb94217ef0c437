from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Optional

CURRENCY_SYMBOLS = MappingProxyType({"usd": "$", "eur": "€", "gbp": "£"})


@dataclass(frozen=True)
class CatalogItem:
    id: str
    name: str
    description: str
    price: int  # minor units (cents)
    currency: str
    image: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["formatted_price"] = format_price(self.price, self.currency)
        return data


PRODUCTS = (
    CatalogItem(
        id="prod_1",
        name="Premium Course",
        description="Complete Next.js and Stripe integration course",
        price=4999,
        currency="usd",
        image="/images/course-premium.jpg",
    ),
    CatalogItem(
        id="prod_2",
        name="Basic Course",
        description="Introduction to Stripe payments",
        price=2999,
        currency="usd",
        image="/images/course-basic.jpg",
    ),
    CatalogItem(
        id="prod_3",
        name="Advanced Workshop",
        description="Advanced Stripe features and webhooks",
        price=7999,
        currency="usd",
        image="/images/workshop-advanced.jpg",
    ),
)

_BY_ID = MappingProxyType({product.id: product for product in PRODUCTS})


def get_product_by_id(product_id: str) -> Optional[CatalogItem]:
    return _BY_ID.get(product_id)


def list_products() -> tuple:
    return PRODUCTS


def format_price(amount: int, currency: str = "usd") -> str:
    """Render an amount in minor units, e.g. 4999 usd -> "$49.99"."""
    value = f"{amount / 100:,.2f}"
    symbol = CURRENCY_SYMBOLS.get(currency.lower())
    if symbol:
        return f"{symbol}{value}"
    return f"{value} {currency.upper()}"
