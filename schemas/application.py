from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from utils.case import decode_json_field

StatusValue = Literal["pending", "forwarded", "rejected", "approved", "info-requested"]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either is accepted on input."""

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    # Partial-update fields that may be omitted but never sent as null
    non_nullable_fields: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        nulls = [
            to_camel(name)
            for name in self.non_nullable_fields
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulls:
            raise ValueError(f"may not be null: {', '.join(nulls)}")
        return self


class PersonalInfoSchema(CamelModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    date_of_birth: Optional[str] = None


class EmploymentInfoSchema(CamelModel):
    employer: str = ""
    position: str = ""
    income: str = ""
    employment_length: str = ""
    employer_contact: Optional[str] = None


class RentalHistorySchema(CamelModel):
    current_address: str = ""
    current_landlord: Optional[str] = None
    current_landlord_phone: Optional[str] = None
    length_of_stay: str = ""
    reason_for_leaving: Optional[str] = None


class ReferenceSchema(CamelModel):
    name: str = ""
    relationship: str = ""
    phone: str = ""


class DocumentSchema(CamelModel):
    id: str
    name: str
    type: str
    url: str
    uploaded_at: datetime


class CustomAnswerSchema(CamelModel):
    question_id: str
    answer: Union[str, list[str]] = ""


class _SectionsMixin(CamelModel):
    """Nested sections may arrive as objects or as JSON-encoded strings."""

    @field_validator(
        "personal_info",
        "employment_info",
        "rental_history",
        "references",
        "documents",
        "custom_answers",
        mode="before",
        check_fields=False,
    )
    @classmethod
    def _decode_stringified(cls, v: Any) -> Any:
        return decode_json_field(v)


class IntakeSubmit(_SectionsMixin):
    """What the public form posts. Any status sent here is ignored."""

    status: Optional[str] = None
    personal_info: PersonalInfoSchema = Field(default_factory=PersonalInfoSchema)
    employment_info: EmploymentInfoSchema = Field(default_factory=EmploymentInfoSchema)
    rental_history: RentalHistorySchema = Field(default_factory=RentalHistorySchema)
    references: list[ReferenceSchema] = Field(default_factory=lambda: [ReferenceSchema()])
    documents: list[DocumentSchema] = Field(default_factory=list)
    custom_answers: list[CustomAnswerSchema] = Field(default_factory=list)


class ApplicationCreate(IntakeSubmit):
    agent_id: str


class ApplicationUpdate(_SectionsMixin):
    """Partial update; only fields present in the body are written."""

    non_nullable_fields: ClassVar[tuple[str, ...]] = (
        "status",
        "personal_info",
        "employment_info",
        "rental_history",
        "references",
        "documents",
        "custom_answers",
    )

    status: Optional[StatusValue] = None
    personal_info: Optional[PersonalInfoSchema] = None
    employment_info: Optional[EmploymentInfoSchema] = None
    rental_history: Optional[RentalHistorySchema] = None
    references: Optional[list[ReferenceSchema]] = None
    documents: Optional[list[DocumentSchema]] = None
    custom_answers: Optional[list[CustomAnswerSchema]] = None
    additional_info_request: Optional[str] = None


class StatusUpdate(CamelModel):
    status: str
    note: Optional[str] = None


class LandlordDecision(CamelModel):
    status: Literal["approved", "rejected", "info-requested"]
    note: Optional[str] = None


class StepValidationResponse(CamelModel):
    step: str
    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)


class UploadedFileSchema(CamelModel):
    """A file the storage side has already accepted, as reported by the browser."""

    name: str
    type: str
    size: int = Field(0, ge=0)
    url: str


class DocumentAttach(CamelModel):
    files: list[UploadedFileSchema] = Field(default_factory=list)
