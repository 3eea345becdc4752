from app.services.draw_flow import DrawError, DrawLedger, DrawStatus, Participant
from app.services.matcher import Assignment, FailureReason, MatchResult, match

__all__ = [
    "Assignment",
    "DrawError",
    "DrawLedger",
    "DrawStatus",
    "FailureReason",
    "MatchResult",
    "Participant",
    "match",
]
