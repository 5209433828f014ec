"""Shared fixtures for ballot-building tests"""

import pytest

from database.models import Ballot, RankEntry


def build_ballot(meeting_id, ranks, availability=None, username="voter", ballot_id=None):
    """ranks: list of (movie_id, rank) pairs"""
    return Ballot(
        id=ballot_id,
        username=username,
        meeting_id=meeting_id,
        votes=[RankEntry(movie_id=movie_id, rank=rank) for movie_id, rank in ranks],
        availability=availability,
    )


@pytest.fixture
def make_ballot():
    return build_ballot


@pytest.fixture
def tied_availability_ballots():
    """Three ballots on meeting 1 with a two-way availability tie"""
    return [
        build_ballot(1, [(1, 1), (2, 2)], ["2024-01-15"], username="a"),
        build_ballot(1, [(2, 1), (1, 3)], ["2024-01-15", "2024-01-16"], username="b"),
        build_ballot(1, [(3, 1), (1, 2)], ["2024-01-16"], username="c"),
    ]
