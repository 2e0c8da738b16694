"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Referenced bill, payment record, loan or withdrawal does not exist"""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class IndexUnavailableError(DomainException):
    """Ordered query cannot be served because its index is not ready"""

    pass


class ConcurrentUpdateError(DomainException):
    """Balance was changed by another writer between read and write"""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} was modified concurrently")


class InvalidMonthTokenError(DomainException):
    """Month token is not a valid YYYY-MM string"""

    pass


class InstallmentReversalError(DomainException):
    """Loan installments cannot be marked unpaid once paid"""

    pass


class InstallmentAlreadyPaidError(DomainException):
    """Loan installment already has a payment for the month"""

    pass
