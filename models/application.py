from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, func

from database import Base


class TenantApplication(Base):
    __tablename__ = "tenant_applications"

    id = Column(String(64), primary_key=True, index=True)
    agent_id = Column(String(64), ForeignKey("agent_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    # Nested sections stored snake_case (camelCase on the wire)
    personal_info = Column(JSON, nullable=False)
    employment_info = Column(JSON, nullable=False)
    rental_history = Column(JSON, nullable=False)
    tenant_references = Column(JSON, nullable=False)
    documents = Column(JSON, nullable=False, default=list)
    custom_answers = Column(JSON, nullable=False, default=list)
    # The agent's questions as they read when the tenant submitted
    question_snapshot = Column(JSON, nullable=False, default=list)
    additional_info_request = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Set explicitly on every mutation so it always moves forward
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
