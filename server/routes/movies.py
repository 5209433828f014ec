"""
Movie API routes
"""

from fastapi import APIRouter, Depends

from config import get_logger
from database.services.voting import VotingService
from server.dependencies import get_service, require_admin
from server.models.requests import MovieRequest

logger = get_logger(__name__).bind(component="api")


router = APIRouter(prefix="/api")


@router.get("/movies")
def list_movies(service: VotingService = Depends(get_service)):
    """All suggested movies, newest first"""
    movies = service.list_movies()
    return {"success": True, "movies": movies, "count": len(movies)}


@router.post("/movies")
def add_movie(body: MovieRequest, service: VotingService = Depends(get_service)):
    """Suggest a movie; poster/genres are filled from TMDB when configured"""
    movie = service.add_movie(
        body.title, poster=body.poster, notes=body.notes, suggester=body.suggester
    )
    return {"success": True, "movie": movie}


@router.delete("/movies/{movie_id}")
def delete_movie(
    movie_id: int,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    """Delete a movie that no meeting has watched"""
    service.delete_movie(movie_id)
    return {"success": True}


@router.post("/movies/{movie_id}/metadata")
def refresh_movie_metadata(
    movie_id: int,
    service: VotingService = Depends(get_service),
    is_admin: bool = Depends(require_admin),
):
    """Re-run the TMDB lookup for one movie"""
    movie = service.refresh_movie_metadata(movie_id)
    return {"success": True, "movie": movie}
