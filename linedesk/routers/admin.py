"""Operator endpoints for inspecting and resetting conversation control."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from linedesk.config import settings as app_settings
from linedesk.database import get_db
from linedesk.schemas.admin import ResetResponse, UserStateResponse
from linedesk.services.state_service import get_state, reset_to_ai

router = APIRouter(prefix="/admin", tags=["admin"])


def _require_admin_token(provided: Optional[str]) -> None:
    expected = app_settings.admin_token
    if not expected:
        raise HTTPException(status_code=500, detail="ADMIN_TOKEN not configured")
    if not provided or provided != expected:
        raise HTTPException(status_code=401, detail="Invalid admin token")


@router.get("/users/{line_user_id}/state", response_model=UserStateResponse)
def get_user_state(
    line_user_id: str,
    db: Session = Depends(get_db),
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
):
    _require_admin_token(x_admin_token)
    snapshot = get_state(db, line_user_id)
    return UserStateResponse(
        line_user_id=snapshot.user_id,
        nickname=snapshot.nickname,
        is_human_mode=snapshot.human_mode,
        last_human_interaction=snapshot.last_human_interaction_at,
        last_ai_reset_at=snapshot.last_ai_reset_at,
    )


@router.post("/users/{line_user_id}/reset", response_model=ResetResponse)
def reset_user(
    line_user_id: str,
    db: Session = Depends(get_db),
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
):
    """Hand the conversation back to AI and start a fresh AI context."""
    _require_admin_token(x_admin_token)
    reset_at = reset_to_ai(db, line_user_id)
    return ResetResponse(success=True, line_user_id=line_user_id, reset_at=reset_at)
