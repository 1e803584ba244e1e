from linedesk.services.dedup_service import Admission, admit
from linedesk.services.keyword_service import match_keyword, parse_keywords
from linedesk.services.pipeline_service import EventOutcome, handle_event
from linedesk.services.state_machine import (
    ControlState,
    RoutingAction,
    RoutingDecision,
    decide,
    is_timed_out,
)
from linedesk.services.state_service import clear_human_mode, get_state, upsert_handover
