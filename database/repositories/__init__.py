"""
Database Repositories

Focused repository classes for clean separation of concerns:
- MovieRepository: Movie suggestions and metadata
- MeetingRepository: Meetings, voting flag and resolution results
- BallotRepository: Ranked ballots and availability
- ReviewRepository: Post-watch reviews
"""

from database.repositories.base import BaseRepository
from database.repositories.movies import MovieRepository
from database.repositories.meetings import MeetingRepository
from database.repositories.ballots import BallotRepository
from database.repositories.reviews import ReviewRepository

__all__ = [
    "BaseRepository",
    "MovieRepository",
    "MeetingRepository",
    "BallotRepository",
    "ReviewRepository",
]
