"""Keyword-overlap similarity between pages and transitive grouping.

Scores are Jaccard overlaps of the lower-cased keyword sets expressed as an
integer percentage, so they are symmetric and grow with the overlap.
Candidate pairs come from an inverted index over each page's keyword
*prefix*: with keywords ordered rarest-first across the crawl, two pages can
only reach the threshold if their prefixes share a keyword, so no qualifying
pair is skipped while pages sharing only common words are never compared.
Qualifying pairs are merged with union-find, which makes the groups a true
partition that does not depend on input order.
"""

import logging
from collections import Counter, defaultdict
from itertools import combinations
from typing import Iterable, Sequence

from site_insights.schemas.crawl import Keyword, Page
from site_insights.utils.helpers import percent

logger = logging.getLogger(__name__)


def keyword_set(keywords: Iterable[Keyword]) -> frozenset[str]:
    return frozenset(k.word.strip().lower() for k in keywords if k.word and k.word.strip())


def similarity_score(first: frozenset[str], second: frozenset[str]) -> int:
    """Jaccard similarity of two keyword sets as a 0-100 integer."""
    if not first or not second:
        return 0
    return percent(len(first & second), len(first | second))


def _min_overlap(size: int, threshold: int) -> int:
    # A rounded score >= threshold needs a raw overlap of (threshold - 0.5)%.
    return max(1, -(-(2 * threshold - 1) * size // 200))


class UnionFind:
    """Disjoint-set forest keyed by page id."""

    def __init__(self, items: Iterable[str]) -> None:
        self._parent = {item: item for item in items}

    def find(self, item: str) -> str:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, first: str, second: str) -> None:
        a, b = self.find(first), self.find(second)
        if a == b:
            return
        # Smaller id becomes the root so the forest shape is deterministic.
        if b < a:
            a, b = b, a
        self._parent[b] = a

    def groups(self) -> list[list[str]]:
        members: dict[str, list[str]] = defaultdict(list)
        for item in self._parent:
            members[self.find(item)].append(item)
        return list(members.values())


def candidate_pairs(sets: dict[str, frozenset[str]], threshold: int) -> set[tuple[str, str]]:
    """Pairs of page ids sharing at least one keyword in their prefixes."""
    frequency = Counter(word for words in sets.values() for word in words)
    buckets: dict[str, list[str]] = defaultdict(list)
    for page_id in sorted(sets):
        words = sorted(sets[page_id], key=lambda w: (frequency[w], w))
        prefix = len(words) - _min_overlap(len(words), threshold) + 1
        for word in words[:prefix]:
            buckets[word].append(page_id)

    pairs: set[tuple[str, str]] = set()
    for ids in buckets.values():
        pairs.update(combinations(ids, 2))
    return pairs


def group_similar_pages(
    pages: Sequence[Page], threshold: int = 70
) -> list[tuple[int, list[Page]]]:
    """Partition pages into groups of transitively similar content.

    Returns ``(similarity, members)`` tuples, where similarity is the lowest
    pairwise score inside the group.  Members are ordered by URL and groups
    by descending similarity.
    """
    sets = {p.id: keyword_set(p.keywords) for p in pages}
    sets = {page_id: words for page_id, words in sets.items() if words}
    if len(sets) < 2:
        return []

    pairs = candidate_pairs(sets, threshold)
    forest = UnionFind(sets)
    matched = 0
    for first, second in pairs:
        if similarity_score(sets[first], sets[second]) >= threshold:
            forest.union(first, second)
            matched += 1
    logger.debug(
        "Similarity: %d keyword sets, %d candidate pairs, %d matches",
        len(sets), len(pairs), matched,
    )

    by_id = {p.id: p for p in pages}
    groups: list[tuple[int, list[Page]]] = []
    for ids in forest.groups():
        if len(ids) < 2:
            continue
        members = sorted((by_id[i] for i in ids), key=lambda p: (p.url, p.id))
        lowest = min(similarity_score(sets[a], sets[b]) for a, b in combinations(ids, 2))
        groups.append((lowest, members))

    groups.sort(key=lambda g: (-g[0], g[1][0].url, g[1][0].id))
    return groups
