"""
Review API routes - scores for watched movies
"""

from fastapi import APIRouter, Depends

from database.services.voting import VotingService
from server.dependencies import get_service
from server.models.requests import ReviewRequest


router = APIRouter(prefix="/api")


@router.get("/movies/{movie_id}/reviews")
def get_reviews(movie_id: int, service: VotingService = Depends(get_service)):
    """Reviews for a movie with count and average"""
    return {"success": True, **service.get_reviews(movie_id)}


@router.post("/movies/{movie_id}/reviews")
def add_review(movie_id: int, body: ReviewRequest, service: VotingService = Depends(get_service)):
    """Add a 0-10 review; returns the refreshed summary"""
    result = service.add_review(
        movie_id, username=body.username, score=body.score, comment=body.comment
    )
    return {"success": True, **result}
