from decimal import Decimal

ITEM_TYPE_MERCH = "merch"
ITEM_TYPE_EVENT = "event"
CART_ITEM_TYPES = (ITEM_TYPE_MERCH, ITEM_TYPE_EVENT)

TAX_RATE = Decimal("0.18")
MONEY_QUANTUM = Decimal("0.01")

PROMO_CODE_DISCOUNTS: dict[str, Decimal] = {
    "SAVE10": Decimal("0.10"),
    "SAVE20": Decimal("0.20"),
    "FIRST50": Decimal("0.50"),
}

CART_TTL_SECONDS = 24 * 60 * 60
MAX_LINE_QUANTITY = 99
