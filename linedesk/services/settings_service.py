from dataclasses import dataclass, field
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linedesk.logging_config import get_logger
from linedesk.models import BotSettings
from linedesk.services.keyword_service import parse_csv_list, parse_keywords

logger = get_logger("settings_service")

DEFAULT_HANDOVER_TIMEOUT_MINUTES = 30


class SettingsUnavailableError(Exception):
    """Raised when the settings record cannot be read."""


@dataclass(frozen=True)
class GPTConfig:
    api_key: Optional[str] = None
    model: str = "gpt-4.1-mini"
    temperature: Optional[float] = 0.7
    max_tokens: int = 2000
    reasoning_effort: str = "none"
    verbosity: str = "medium"


@dataclass(frozen=True)
class GeminiConfig:
    api_key: Optional[str] = None
    model: str = "gemini-pro"
    temperature: Optional[float] = 1.0
    max_tokens: int = 2000
    thinking_level: str = "high"


@dataclass(frozen=True)
class RouterSettings:
    """Per-invocation snapshot of the product settings record."""

    ai_enabled: bool = True
    active_ai: str = "gpt"
    gpt: GPTConfig = field(default_factory=GPTConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    system_prompt: str = ""
    reference_text: str = ""
    reference_file_url: str = ""
    line_channel_access_token: Optional[str] = None
    line_channel_secret: Optional[str] = None
    handover_keywords: Tuple[str, ...] = ()
    handover_timeout_minutes: int = DEFAULT_HANDOVER_TIMEOUT_MINUTES
    agent_user_ids: Tuple[str, ...] = ()


def _or_default(value, default):
    return default if value is None else value


def to_router_settings(row: BotSettings) -> RouterSettings:
    gpt = GPTConfig(
        api_key=row.gpt_api_key,
        model=row.gpt_model_name or GPTConfig.model,
        temperature=row.gpt_temperature,
        max_tokens=_or_default(row.gpt_max_tokens, GPTConfig.max_tokens),
        reasoning_effort=row.gpt_reasoning_effort or GPTConfig.reasoning_effort,
        verbosity=row.gpt_verbosity or GPTConfig.verbosity,
    )
    gemini = GeminiConfig(
        api_key=row.gemini_api_key,
        model=row.gemini_model_name or GeminiConfig.model,
        temperature=row.gemini_temperature,
        max_tokens=_or_default(row.gemini_max_tokens, GeminiConfig.max_tokens),
        thinking_level=row.gemini_thinking_level or GeminiConfig.thinking_level,
    )
    return RouterSettings(
        ai_enabled=bool(_or_default(row.is_ai_enabled, True)),
        active_ai=(row.active_ai or "gpt").strip().lower(),
        gpt=gpt,
        gemini=gemini,
        system_prompt=row.system_prompt or "",
        reference_text=row.reference_text or "",
        reference_file_url=(row.reference_file_url or "").strip(),
        line_channel_access_token=row.line_channel_access_token,
        line_channel_secret=row.line_channel_secret,
        handover_keywords=tuple(parse_keywords(row.handover_keywords)),
        handover_timeout_minutes=_or_default(row.handover_timeout_minutes, DEFAULT_HANDOVER_TIMEOUT_MINUTES),
        agent_user_ids=tuple(parse_csv_list(row.agent_user_ids)),
    )


def load_router_settings(db: Session) -> RouterSettings:
    """Read the single settings row. Raises SettingsUnavailableError."""
    try:
        row = db.query(BotSettings).order_by(BotSettings.created_at).first()
    except SQLAlchemyError as e:
        logger.error(f"Settings fetch failed: {e}")
        raise SettingsUnavailableError(str(e)) from e

    if row is None:
        logger.error("Settings record not found")
        raise SettingsUnavailableError("settings record not found")

    return to_router_settings(row)
