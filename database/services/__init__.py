"""
Database Services

Business logic layer on top of the repositories.
"""

from database.services.voting import VotingService

__all__ = ['VotingService']
