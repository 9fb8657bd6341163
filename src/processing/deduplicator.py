from typing import Iterable, List

from core.entities import EvidenceItem


def dedupe_by_id(items: Iterable[EvidenceItem]) -> List[EvidenceItem]:
    """Keep the first item seen for each id, in input order."""
    seen = set()
    unique = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


def rank_by_score(items: Iterable[EvidenceItem]) -> List[EvidenceItem]:
    """
    Dedupe, then sort descending by score.
    The sort is stable, so equal scores keep their input order.
    """
    return sorted(dedupe_by_id(items), key=lambda item: item.score, reverse=True)
