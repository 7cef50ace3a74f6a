"""
Picking the winner of a vote.

Highest vote count wins. Ties go to the candidate proposed first; candidates proposed at the very same instant
fall back to the candidate id. The ranking only depends on the final counts, so the order in which votes arrived
never changes the outcome.
"""

from datetime import datetime
from typing import Optional

from src.voting.candidate import Candidate

RankKey = tuple[int, datetime, str]


def rank_key(candidate: Candidate) -> RankKey:
    """Sort key: smaller is better."""
    return (-candidate.vote_count, candidate.created_at, str(candidate.candidate_id))


def rank_candidates(candidates: list[Candidate]) -> list[Candidate]:
    return sorted(candidates, key=rank_key)


def leading_candidate(candidates: list[Candidate]) -> Optional[Candidate]:
    if not candidates:
        return None
    return min(candidates, key=rank_key)
