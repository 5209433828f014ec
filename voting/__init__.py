"""Voting engine - Borda scoring, availability tally, resolution, lifecycle"""

from voting.lifecycle import Transition, plan_transition, should_resolve
from voting.resolver import Resolution, resolve
from voting.scoring import (
    MovieScore,
    date_counts,
    score,
    select_winning_date,
    select_winning_movie,
    tally,
)
from voting.validator import BallotValidator

__all__ = [
    "BallotValidator",
    "MovieScore",
    "Resolution",
    "Transition",
    "date_counts",
    "plan_transition",
    "resolve",
    "score",
    "select_winning_date",
    "select_winning_movie",
    "should_resolve",
    "tally",
]
