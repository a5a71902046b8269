"""Cross-collection search over the in-memory catalog snapshot.

By default an entity is a hit only when its name contains the query and
one of the name's words starts with it. ``MatchPolicy.NAME_OR_DETAILS``
also accepts hits on descriptions and agent capabilities.
"""

from enum import Enum
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Sequence
from typing import Tuple

from aitoonic.models import Agent
from aitoonic.models import Category
from aitoonic.models import SearchResult
from aitoonic.models import Tool
from aitoonic.seo import name_slug

RESULT_TYPES = ("tool", "agent", "category")
GROUP_TITLES = {"tool": "Tools", "agent": "Agents", "category": "Categories"}


class MatchPolicy(str, Enum):
    """Which fields can make an entity a search hit."""

    NAME_ONLY = "name_only"
    NAME_OR_DETAILS = "name_or_details"


def _words_start_with(text: str, term: str) -> bool:
    return any(word.startswith(term) for word in text.split())


def name_matches(name: str, term: str) -> bool:
    """Substring match on the name plus a word that starts with the term."""
    lowered = (name or "").lower()
    return term in lowered and _words_start_with(lowered, term)


def _details_match(entity, term: str) -> bool:
    if term in (entity.description or "").lower():
        return True
    if isinstance(entity, Agent):
        return any(_words_start_with(cap.lower(), term) for cap in entity.capabilities)
    return False


def _candidates(
    tools: Iterable[Tool], agents: Iterable[Agent], categories: Iterable[Category]
) -> Iterator[Tuple[str, object]]:
    for tool in tools:
        yield "tool", tool
    for agent in agents:
        yield "agent", agent
    for category in categories:
        yield "category", category


def _rank_key(result: SearchResult, term: str) -> Tuple[bool, bool, int]:
    name = (result.item.name or "").lower()
    return (name != term, not name.startswith(term), len(name))


def search(
    query: str,
    tools: Sequence[Tool],
    agents: Sequence[Agent],
    categories: Sequence[Category],
    policy: MatchPolicy = MatchPolicy.NAME_ONLY,
) -> List[SearchResult]:
    """Return ranked hits across tools, agents and categories.

    Ordering: exact name first, then names starting with the query, then
    shorter names. Equal-ranked hits keep tools/agents/categories input order.
    """
    if not query or not query.strip():
        return []

    term = query.lower()
    results = []
    for result_type, entity in _candidates(tools, agents, categories):
        hit = name_matches(entity.name, term)
        if not hit and policy is MatchPolicy.NAME_OR_DETAILS:
            hit = _details_match(entity, term)
        if hit:
            results.append(SearchResult(type=result_type, item=entity))

    results.sort(key=lambda result: _rank_key(result, term))
    return results


def group_results(results: Iterable[SearchResult]) -> Dict[str, List[SearchResult]]:
    """Bucket results by type, keeping rank order inside each non-empty group."""
    groups: Dict[str, List[SearchResult]] = {result_type: [] for result_type in RESULT_TYPES}
    for result in results:
        groups[result.type].append(result)
    return {result_type: hits for result_type, hits in groups.items() if hits}


def result_href(result: SearchResult) -> str:
    """Site-relative link for a hit."""
    slug = name_slug(result.item.name)
    if result.type == "tool":
        return f"/ai/{slug}"
    if result.type == "agent":
        return f"/ai-agent/{slug}"
    return f"/category/{slug}"
