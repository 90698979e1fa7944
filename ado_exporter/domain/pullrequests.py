"""
Pull request domain models - Active pull requests, labels and reviewer votes
"""

from dataclasses import dataclass, field
from datetime import datetime

# Reviewer vote values as reported by the Git pull request API
VOTE_APPROVED = 10
VOTE_APPROVED_SUGGESTIONS = 5
VOTE_NONE = 0
VOTE_WAITING_FOR_AUTHOR = -5
VOTE_REJECTED = -10


@dataclass
class VoteSummary:
    """
    Aggregated reviewer votes of one pull request.

    Example:
        summary = VoteSummary.from_votes([10, -5])
        summary.humanize()  # "WaitingForAuthor"
    """

    approved: int = 0
    approved_suggestions: int = 0
    none: int = 0
    waiting_for_author: int = 0
    rejected: int = 0
    count: int = 0

    @classmethod
    def from_votes(cls, votes: list[int]) -> "VoteSummary":
        summary = cls()
        for vote in votes:
            summary.count += 1
            if vote == VOTE_APPROVED:
                summary.approved += 1
            elif vote == VOTE_APPROVED_SUGGESTIONS:
                summary.approved_suggestions += 1
            elif vote == VOTE_NONE:
                summary.none += 1
            elif vote == VOTE_WAITING_FOR_AUTHOR:
                summary.waiting_for_author += 1
            elif vote == VOTE_REJECTED:
                summary.rejected += 1
        return summary

    def humanize(self) -> str:
        """
        Most significant vote state, the strongest objection wins.

        Returns:
            Rejected, WaitingForAuthor, ApprovedSuggestions, Approved or None

        Examples:
            >>> VoteSummary.from_votes([10, 5]).humanize()
            'ApprovedSuggestions'
            >>> VoteSummary.from_votes([]).humanize()
            'None'
        """
        if self.rejected >= 1:
            return "Rejected"
        if self.waiting_for_author >= 1:
            return "WaitingForAuthor"
        if self.approved_suggestions >= 1:
            return "ApprovedSuggestions"
        if self.approved >= 1:
            return "Approved"
        return "None"


@dataclass
class PullRequestLabel:
    name: str
    active: bool = True


@dataclass
class PullRequest:
    """
    Represents an active pull request.

    Attributes:
        id: Pull request ID
        title: Title
        status: active, completed, abandoned
        is_draft: Draft flag
        creator: Display name of the author
        source_branch: Source ref name
        target_branch: Target ref name
        creation_date: Creation time
        reviewer_votes: Vote of every reviewer
        labels: Labels (tags) attached to the pull request
    """

    id: int
    title: str
    status: str = ""
    is_draft: bool = False
    creator: str = ""
    source_branch: str = ""
    target_branch: str = ""
    creation_date: datetime | None = None
    reviewer_votes: list[int] = field(default_factory=list)
    labels: list[PullRequestLabel] = field(default_factory=list)

    @property
    def vote_summary(self) -> VoteSummary:
        return VoteSummary.from_votes(self.reviewer_votes)
