"""
Work item domain models - Saved query references and their results
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueryRef:
    """
    A saved work item query bound to the project it runs in.

    Configured as "<queryId>@<projectId>".

    Example:
        ref = QueryRef.parse("0ae1c6b4-...@8f3b...")
        ref.query_id, ref.project_id
    """

    query_id: str
    project_id: str

    @classmethod
    def parse(cls, value: str) -> "QueryRef":
        """
        Parse "<queryId>@<projectId>".

        Raises:
            ValueError: If the value does not contain exactly one '@' separating two non-empty parts
        """
        parts = value.split("@")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Query must be <queryId>@<projectId>: {value}")
        return cls(query_id=parts[0], project_id=parts[1])

    def __str__(self) -> str:
        return f"{self.query_id}@{self.project_id}"


@dataclass
class WorkItemRef:
    """Reference returned by a WIQL query (ID and REST URL)."""

    id: int
    url: str


@dataclass
class WorkItem:
    """
    Work item fields exported as labels.

    Date fields are kept as the raw strings the API returns since they are
    only used as label values.
    """

    id: int
    title: str = ""
    path: str = ""
    created_date: str = ""
    accepted_date: str = ""
    resolved_date: str = ""
    closed_date: str = ""
