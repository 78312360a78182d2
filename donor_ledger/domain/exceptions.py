"""Domain-specific exceptions"""

from typing import Any, Dict, List


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"


class ValidationError(DomainException):
    """Request is malformed or arithmetically inconsistent"""

    code = "validation_failed"

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors)
        super().__init__(f"Validation failed: {fields}")

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.errors]


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class SolicitorNotAssignedError(NotFoundError):
    """Payment exists but has no solicitor to recalculate against"""

    code = "solicitor_not_assigned"

    def __init__(self, payment_id: int):
        self.entity = "Payment"
        self.entity_id = payment_id
        DomainException.__init__(self, f"Payment {payment_id} not found or not assigned to solicitor")


class ConflictError(DomainException):
    """Operation conflicts with stored state"""

    code = "conflict"


class IntegrityFailure(DomainException):
    """
    A compensating rollback failed.

    Persisted data is inconsistent and needs manual reconciliation.
    """

    code = "rollback_failed"

    def __init__(self, entity: str, entity_id: Any, cause: BaseException | None = None):
        self.entity = entity
        self.entity_id = entity_id
        self.cause = cause
        super().__init__(f"Rollback of {entity} {entity_id} failed: {cause}")
