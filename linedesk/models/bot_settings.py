import uuid

from sqlalchemy import Boolean, Column, Float, Integer, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.sql import func

from linedesk.database import Base


class BotSettings(Base):
    __tablename__ = "settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    is_ai_enabled = Column(Boolean, default=True)
    active_ai = Column(Text, default="gpt")  # gpt, gemini

    gpt_api_key = Column(Text)
    gpt_model_name = Column(Text, default="gpt-4.1-mini")
    gpt_temperature = Column(Float, default=0.7)
    gpt_max_tokens = Column(Integer, default=2000)
    gpt_reasoning_effort = Column(Text, default="none")
    gpt_verbosity = Column(Text, default="medium")

    gemini_api_key = Column(Text)
    gemini_model_name = Column(Text, default="gemini-pro")
    gemini_temperature = Column(Float, default=1.0)
    gemini_max_tokens = Column(Integer, default=2000)
    gemini_thinking_level = Column(Text, default="high")

    system_prompt = Column(Text, default="你是一個專業的客服助手。")
    reference_text = Column(Text, default="")
    reference_file_url = Column(Text, default="")

    line_channel_access_token = Column(Text)
    line_channel_secret = Column(Text)

    handover_keywords = Column(Text, default="真人,客服,人工")
    handover_timeout_minutes = Column(Integer, default=30)
    agent_user_ids = Column(Text, default="")
