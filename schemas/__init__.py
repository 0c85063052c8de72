from schemas.agent import (
    AgentCreate,
    AgentUpdate,
    CustomQuestionCreate,
    CustomQuestionUpdate,
)
from schemas.application import (
    ApplicationCreate,
    ApplicationUpdate,
    CustomAnswerSchema,
    DocumentAttach,
    DocumentSchema,
    EmploymentInfoSchema,
    IntakeSubmit,
    LandlordDecision,
    PersonalInfoSchema,
    ReferenceSchema,
    RentalHistorySchema,
    StatusUpdate,
    StepValidationResponse,
    UploadedFileSchema,
)

__all__ = [
    "AgentCreate",
    "AgentUpdate",
    "CustomQuestionCreate",
    "CustomQuestionUpdate",
    "ApplicationCreate",
    "ApplicationUpdate",
    "CustomAnswerSchema",
    "DocumentAttach",
    "DocumentSchema",
    "EmploymentInfoSchema",
    "IntakeSubmit",
    "LandlordDecision",
    "PersonalInfoSchema",
    "ReferenceSchema",
    "RentalHistorySchema",
    "StatusUpdate",
    "StepValidationResponse",
    "UploadedFileSchema",
]
