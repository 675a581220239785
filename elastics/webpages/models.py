"""
Data Types for Webpage Search

- Query: per-request mutable query state, owned by one pipeline run.
- SearchResult: one presentation-ready result record.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Query:
    """Query text and the state derived from its inline filters.

    Attributes:
        text: Query text with all recognized inline filters removed.
        language: Active search language, used to localize field names.
        indices: Ordered, de-duplicated active indices.
        filters: Equality filters as (field, value) pairs.
        grouping_blocked: Whether same-host grouping is disabled.
    """

    text: str
    language: str
    indices: list[str] = field(default_factory=list)
    filters: list[tuple[str, str]] = field(default_factory=list)
    grouping_blocked: bool = False

    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class SearchResult:
    score: float
    document_id: str
    index: str
    trec_id: str = ""
    title: str = ""
    target_hostname: str = ""
    target_uri: str = ""
    snippet: str = ""
    page_rank: Optional[float] = None
    spam_rank: Optional[int] = None
    is_grouping_suggested: bool = False
    more_suggested: bool = False
    explanation: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "uuid": self.document_id,
            "index": self.index,
            "trec_id": self.trec_id,
            "target_hostname": self.target_hostname,
            "target_uri": self.target_uri,
            "page_rank": self.page_rank,
            "spam_rank": self.spam_rank,
            "title": self.title,
            "snippet": self.snippet,
            "explanation": self.explanation,
        }
