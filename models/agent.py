from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from database import Base


class AgentProfile(Base):
    __tablename__ = "agent_profiles"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    business_name = Column(String(256), nullable=False, default="")
    email = Column(String(256), nullable=False, default="")
    phone = Column(String(64), nullable=False, default="")
    logo = Column(Text, nullable=True)
    primary_color = Column(String(32), nullable=True)
    secondary_color = Column(String(32), nullable=True)
    url_slug = Column(String(128), unique=True, nullable=False, index=True)
    # Created on the fly for an unknown public slug, not by a real signup
    is_placeholder = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    custom_questions = relationship(
        "CustomQuestion",
        back_populates="agent",
        cascade="all, delete-orphan",
        order_by="CustomQuestion.position",
    )


class CustomQuestion(Base):
    __tablename__ = "custom_questions"

    id = Column(String(64), primary_key=True, index=True)
    agent_id = Column(String(64), ForeignKey("agent_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    question_text = Column(Text, nullable=False)
    required = Column(Boolean, nullable=False, default=False)
    # text | radio | checkbox | select
    type = Column(String(16), nullable=False, default="text")
    options = Column(JSON, nullable=False, default=list)

    agent = relationship("AgentProfile", back_populates="custom_questions")
