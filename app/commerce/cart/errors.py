class CartError(Exception):
    pass


class CartNotFoundError(CartError):
    pass


class CartItemNotFoundError(CartError):
    pass


class InvalidCartItemError(CartError):
    pass


class InvalidPromoCodeError(CartError):
    pass
