class OrderError(Exception):
    pass


class EmptyCartError(OrderError):
    pass


class CartItemUnavailableError(OrderError):
    pass


class OrderNotFoundError(OrderError):
    pass


class OrderAccessDeniedError(OrderError):
    pass


class InvalidPaymentSignatureError(OrderError):
    pass


class PaymentOrderMismatchError(OrderError):
    pass


class OrderStateConflictError(OrderError):
    pass
