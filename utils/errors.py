"""
utils/errors.py
---------------
Exceptions raised by the service layer and translated into replies by handlers.
"""


class ValidationError(ValueError):
    """
    Raised when user-supplied subscription or payment data is invalid.

    Attributes:
        errors: Mapping of field name -> human-readable problem, one entry
            for every field that failed.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        details = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(f"Invalid data ({details})")


class NotFoundError(LookupError):
    """Raised when a subscription or payment does not exist or is not owned by the caller."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} #{entity_id} not found")
