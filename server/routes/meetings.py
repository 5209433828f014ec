"""
Meeting API routes

Reads are public. Every mutation needs an admin session; closing voting
(POST /close or PATCH voting_open=false) resolves the meeting.
"""

from fastapi import APIRouter, Depends

from config import get_logger
from database.services.voting import VotingService
from server.dependencies import get_service, require_admin
from server.models.requests import MeetingCreateRequest, MeetingUpdateRequest, WatchedRequest

logger = get_logger(__name__).bind(component="api")


router = APIRouter(prefix="/api")


@router.get("/meetings")
def list_meetings(service: VotingService = Depends(get_service)):
    """All meetings, latest first, with date counts and watched movie"""
    meetings = service.list_meetings()
    return {"success": True, "meetings": meetings, "count": len(meetings)}


@router.post("/meetings")
def create_meeting(
    body: MeetingCreateRequest,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    meeting = service.create_meeting(
        name=body.name,
        date=body.date,
        candidate_days=body.candidate_days,
        allowed_movie_ids=body.allowed_movie_ids,
        voting_open=body.voting_open,
    )
    return {"success": True, "meeting": meeting}


@router.get("/meetings/{meeting_id}")
def get_meeting(meeting_id: int, service: VotingService = Depends(get_service)):
    return {"success": True, "meeting": service.get_meeting(meeting_id)}


@router.patch("/meetings/{meeting_id}")
def update_meeting(
    meeting_id: int,
    body: MeetingUpdateRequest,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    """Patch name/date/candidate_days/allowed_movie_ids/voting_open"""
    meeting = service.update_meeting(meeting_id, body.provided_fields())
    return {"success": True, "meeting": meeting}


@router.delete("/meetings/{meeting_id}")
def delete_meeting(
    meeting_id: int,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    """Delete a meeting and its ballots"""
    service.delete_meeting(meeting_id)
    return {"success": True}


@router.post("/meetings/{meeting_id}/close")
def close_voting(
    meeting_id: int,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    """Close voting; the first close picks the winning movie and date"""
    return {"success": True, "meeting": service.close_voting(meeting_id)}


@router.post("/meetings/{meeting_id}/open")
def reopen_voting(
    meeting_id: int,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    return {"success": True, "meeting": service.reopen_voting(meeting_id)}


@router.post("/meetings/{meeting_id}/watched")
def mark_watched(
    meeting_id: int,
    body: WatchedRequest,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    """Set the watched movie; a null movie_id clears it"""
    return {"success": True, "meeting": service.mark_watched(meeting_id, body.movie_id)}
