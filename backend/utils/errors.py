"""Domain errors raised by the service helpers in ``utils``.

Each carries the HTTP status the API reports it with, so routes can turn
any of them into an ``HTTPException`` without a lookup table.
"""


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 409


class EmptyCartError(DomainError):
    pass


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InsufficientStockError(DomainError):
    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id: int):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class VoucherNotFoundError(NotFoundError):
    def __init__(self, code: str):
        super().__init__(f"Voucher {code} not found")
        self.code = code


class VoucherUnavailableError(DomainError):
    pass


class OrderStatusError(DomainError):
    pass
