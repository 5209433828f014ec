"""Borda scoring and availability tally.

Pure functions over in-memory ballots. No I/O, no randomness: the same
ballots always produce the same output, whichever store they came from.

Points per rank entry are 4 - rank (rank 1 -> 3, rank 2 -> 2, rank 3 -> 1).
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from database.models import Ballot

MAX_RANK = 3
BORDA_BASE = MAX_RANK + 1


@dataclass(frozen=True)
class MovieScore:
    score: int = 0
    vote_count: int = 0


def points_for_rank(rank: int) -> int:
    return BORDA_BASE - rank


def score(ballots: Iterable[Ballot]) -> Dict[int, MovieScore]:
    """Compute Borda score and vote count per movie.

    Movies with no rank entries are absent; callers default to zero.
    """
    totals: Dict[int, Tuple[int, int]] = {}
    for ballot in ballots:
        for entry in ballot.votes:
            points, votes = totals.get(entry.movie_id, (0, 0))
            totals[entry.movie_id] = (points + points_for_rank(entry.rank), votes + 1)

    return {
        movie_id: MovieScore(score=points, vote_count=votes)
        for movie_id, (points, votes) in totals.items()
    }


def tally(ballots: Iterable[Ballot]) -> Dict[str, int]:
    """Count how many ballots list each date as available.

    Ballots with null availability contribute nothing.
    """
    counts: Dict[str, int] = {}
    for ballot in ballots:
        if not ballot.availability:
            continue
        for day in ballot.availability:
            counts[day] = counts.get(day, 0) + 1
    return counts


def date_counts(counts: Dict[str, int]) -> List[dict]:
    """Display form of a tally: count descending, then date ascending"""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{"date": day, "count": count} for day, count in ordered]


def select_winning_date(counts: Dict[str, int]) -> Optional[str]:
    """Highest count wins; ties go to the lexicographically earliest date"""
    best: Optional[str] = None
    for day, count in counts.items():
        if count <= 0:
            continue
        if best is None or count > counts[best] or (count == counts[best] and day < best):
            best = day
    return best


def ranking_key(movie_id: int, movie_score: MovieScore) -> Tuple[int, int, int]:
    """Sort key: score desc, vote count desc, movie id asc"""
    return (-movie_score.score, -movie_score.vote_count, movie_id)


def select_winning_movie(scores: Dict[int, MovieScore]) -> Optional[int]:
    """Best-ranked movie with at least one vote, or None"""
    candidates = [
        (movie_id, movie_score)
        for movie_id, movie_score in scores.items()
        if movie_score.vote_count > 0
    ]
    if not candidates:
        return None
    movie_id, _ = min(candidates, key=lambda item: ranking_key(*item))
    return movie_id
