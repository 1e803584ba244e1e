import uuid

from sqlalchemy import Column, Index, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from linedesk.database import Base


class ChatLog(Base):
    __tablename__ = "chat_logs"
    __table_args__ = (Index("ix_chat_logs_user_created", "line_user_id", "created_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    line_user_id = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    sender = Column(Text, nullable=False)  # user, ai, system
    ai_type = Column(Text)  # gpt, gemini
    ai_response_id = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)
