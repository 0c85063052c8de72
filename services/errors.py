"""
Domain errors raised by services. Routers translate them to HTTP responses:
validation errors -> 400, RecordNotFoundError -> 404.
"""
from __future__ import annotations


class RecordNotFoundError(LookupError):
    """A referenced application, agent profile or question does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found")


class DomainValidationError(ValueError):
    """Local validation failure; never reaches the persistence layer.

    Attributes:
        errors: field path -> human-readable message
    """

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        self.errors = dict(errors or {})
        super().__init__(message)

    def to_detail(self) -> dict:
        return {"message": str(self), "fields": self.errors}


class DraftValidationError(DomainValidationError):
    """An intake step (or a whole submitted draft) failed validation."""

    def __init__(self, step: str, errors: dict[str, str]):
        self.step = step
        super().__init__(f"Step '{step}' is incomplete", errors)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["step"] = self.step
        return detail


class QuestionValidationError(DomainValidationError):
    pass


class StatusChangeError(DomainValidationError):
    pass


class WizardStateError(RuntimeError):
    """The wizard was driven while submitting or after it completed."""


class SlugInUseError(DomainValidationError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__("Slug already in use", {"urlSlug": f"'{slug}' is taken"})
