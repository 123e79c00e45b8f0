"""Split extracted document text into addressable clauses."""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True, slots=True)
class ClauseDraft:
    """A clause ready to be stored for a document."""

    position: int
    text: str
    section: str
    page: int


def split_into_clauses(
    content: Optional[str],
    min_length: int = 50,
    clauses_per_page: int = 3,
) -> List[ClauseDraft]:
    """Split content on blank lines into clauses.

    Fragments whose trimmed length is not above ``min_length`` are dropped.
    Surviving clause ``i`` is labelled "Section i+1" and assigned to page
    ``i // clauses_per_page + 1``.
    """
    if not content:
        return []

    normalized = content.replace("\r\n", "\n")
    fragments = [
        fragment.strip()
        for fragment in normalized.split("\n\n")
        if len(fragment.strip()) > min_length
    ]

    return [
        ClauseDraft(
            position=index,
            text=fragment,
            section=f"Section {index + 1}",
            page=index // clauses_per_page + 1,
        )
        for index, fragment in enumerate(fragments)
    ]
