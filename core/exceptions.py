"""
Domain exception hierarchy.

Every failure an operation can report maps to one of these. The action
boundary (core/actions.py) turns them into result dicts, the HTTP layer
(api/errors.py) into status codes, both keyed on the `code` attribute.
"""


class ErrorCodes:
    """Standard error codes shared by action results and API responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    STORE_ERROR = "STORE_ERROR"
    AGGREGATION_ERROR = "AGGREGATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PAYMENT_RECORDING_FAILED = "PAYMENT_RECORDING_FAILED"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class InvoicingError(Exception):
    """Base for all domain errors."""

    code = ErrorCodes.INTERNAL_ERROR


class ValidationError(InvoicingError):
    """
    Input failed schema validation.

    `errors` maps a dotted field path ("items.0.quantity") to a message.
    """

    code = ErrorCodes.VALIDATION_ERROR

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors)) or "input"
        super().__init__(f"Validation failed: {fields}")

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: message})

    @classmethod
    def from_errors(cls, result) -> "ValidationError":
        """Build from a core.validation.Err."""
        return cls(result.errors)


class NotFoundError(InvoicingError):
    """Referenced record does not exist for this owner."""

    code = ErrorCodes.NOT_FOUND

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            super().__init__(f"{entity} not found")
        else:
            super().__init__(f"{entity} {entity_id} not found")


class StoreError(InvoicingError):
    """Persistence layer failed (connection, query or constraint error)."""

    code = ErrorCodes.STORE_ERROR


class AggregationError(StoreError):
    """An analytics aggregation query failed."""

    code = ErrorCodes.AGGREGATION_ERROR

    def __init__(self, report: str, cause: Exception | None = None):
        self.report = report
        super().__init__(f"{report} aggregation failed: {cause}" if cause else f"{report} aggregation failed")


class PaymentRecordingError(InvoicingError):
    """
    The transaction was written but the linked invoice could not be marked paid.

    The transaction stays in place; `transaction` is it.
    """

    code = ErrorCodes.PAYMENT_RECORDING_FAILED

    def __init__(self, transaction, cause: Exception):
        self.transaction = transaction
        self.cause = cause
        super().__init__(f"Failed to record payment for transaction {transaction.id}: {cause}")


class NotConfiguredError(InvoicingError):
    """An optional integration (PDF rendering, Telegram, email) is not set up."""

    code = ErrorCodes.NOT_CONFIGURED


class ExternalServiceError(InvoicingError):
    """A third-party service (email gateway, Telegram, LLM, PDF renderer) failed."""

    code = ErrorCodes.EXTERNAL_SERVICE_ERROR

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")
