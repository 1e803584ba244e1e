from typing import Iterable, List, Optional

from linedesk.logging_config import get_logger
from linedesk.services.line_service import LineService
from linedesk.services.result import best_effort

logger = get_logger("notification_service")

NICKNAME_PLACEHOLDER = "LINE 用戶"


def format_handover_notification(nickname: Optional[str], keyword: str, message: str) -> str:
    """Format the agent notification for a handover request."""
    name = nickname or NICKNAME_PLACEHOLDER
    return f"""🔔 真人客服請求

用戶：{name}
觸發關鍵字：{keyword}

訊息內容：
{message}"""


def resolve_nickname(line: LineService, user_id: str, stored_nickname: Optional[str]) -> str:
    """Display name from LINE, else the stored nickname, else a placeholder."""
    result = best_effort(logger, "profile fetch", line.get_profile, user_id)
    if result.ok and result.value and result.value.display_name:
        return result.value.display_name
    return stored_nickname or NICKNAME_PLACEHOLDER


def notify_agents(line: LineService, agent_ids: Iterable[str], text: str) -> List[str]:
    """Push text to every agent. Returns the ids that were notified.

    A failure for one agent does not stop the others.
    """
    delivered = []
    for agent_id in agent_ids:
        result = best_effort(logger, f"agent notification to {agent_id}", line.push_message, agent_id, text)
        if result.ok:
            delivered.append(agent_id)
    return delivered
