"""Meeting resolution: winning movie and date for a closed meeting.

resolve() is pure. Persisting the result, and isolating its failures from
the close-voting call, is the storage adapter's job.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from database.models import Ballot
from voting.scoring import (
    MovieScore,
    score,
    select_winning_date,
    select_winning_movie,
    tally,
)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one meeting

    None means "leave the stored value untouched", never "clear it".
    """

    meeting_id: int
    date: Optional[str] = None
    movie_id: Optional[int] = None
    ballot_count: int = 0
    date_counts: Dict[str, int] = field(default_factory=dict)
    scores: Dict[int, MovieScore] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return self.date is not None or self.movie_id is not None

    @property
    def outcome(self) -> str:
        """Metric label: movie_and_date, movie_only, date_only, no_votes"""
        if self.movie_id is not None and self.date is not None:
            return "movie_and_date"
        if self.movie_id is not None:
            return "movie_only"
        if self.date is not None:
            return "date_only"
        return "no_votes"


def resolve(meeting_id: int, ballots: Iterable[Ballot]) -> Resolution:
    """Pick the winning date and movie from one meeting's ballots.

    Ballots from other meetings are ignored, so callers may pass a wider set.
    """
    scoped: List[Ballot] = [b for b in ballots if b.meeting_id == meeting_id]

    counts = tally(scoped)
    scores = score(scoped)

    return Resolution(
        meeting_id=meeting_id,
        date=select_winning_date(counts),
        movie_id=select_winning_movie(scores),
        ballot_count=len(scoped),
        date_counts=counts,
        scores=scores,
    )
