"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"
    http_status = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(DomainException):
    """Input is malformed or out of range; nothing was changed"""

    code = "validation_error"
    http_status = 422


class CapacityError(DomainException):
    """Credit pool cannot support the reservation, payout or deposit"""

    code = "insufficient_capacity"
    http_status = 409


class AmountMismatchError(DomainException):
    """Buyer payment does not match the charge amount"""

    code = "amount_mismatch"
    http_status = 422

    def __init__(self, expected, paid) -> None:
        self.expected = expected
        self.paid = paid
        super().__init__(f"Payment amount mismatch: expected {expected}, received {paid}")


class NotFoundError(DomainException):
    """Unknown pool, application, payment order, charge or position"""

    code = "not_found"
    http_status = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidStateError(DomainException):
    """Entity is not in a state that allows the requested operation"""

    code = "invalid_state"
    http_status = 409
