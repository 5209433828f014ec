"""
Voting API routes - ballot submission and Borda results
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from config import get_logger
from database.services.voting import VotingService
from server.dependencies import get_service
from server.models.requests import BallotRequest

logger = get_logger(__name__).bind(component="api")


router = APIRouter(prefix="/api")


@router.post("/votes")
def submit_ballot(body: BallotRequest, service: VotingService = Depends(get_service)):
    """Submit up to three ranked movies plus up to three available dates"""
    ballot_id = service.submit_ballot(
        body.meeting_id, body.username, body.ranks, body.availability
    )
    return {"success": True, "ballot_id": ballot_id}


@router.get("/results")
def get_results(
    meeting_id: Optional[int] = Query(default=None),
    meeting_id_legacy: Optional[int] = Query(default=None, alias="meetingId"),
    service: VotingService = Depends(get_service),
):
    """Every movie with score and vote count, optionally for one meeting"""
    scope = meeting_id if meeting_id is not None else meeting_id_legacy
    results = service.get_results(scope)
    return {"success": True, "meeting_id": scope, "results": results}
