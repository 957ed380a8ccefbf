"""Parent/child index over the funding agency forest."""

import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from ..data.models import Agency, to_identifier

logger = logging.getLogger(__name__)

AgencyId = Union[str, int]


class AgencyHierarchy:
    """
    Adjacency index built once from a flat list of agency nodes.

    A node is a root when its parent id is null or names an agency that is
    not in the list. Traversals keep a seen-set, so malformed input with
    cycles still terminates.
    """

    def __init__(self, agencies: Iterable[Agency] = ()):
        self._agencies: Dict[str, Agency] = {}
        for agency in agencies:
            if agency.id in self._agencies:
                logger.warning(f"Duplicate agency id {agency.id}, keeping the last one")
            self._agencies[agency.id] = agency

        self._parents: Dict[str, Optional[str]] = {}
        self._children: Dict[str, List[str]] = {}
        for agency_id, agency in self._agencies.items():
            parent = agency.parent_id
            if parent is None or parent not in self._agencies or parent == agency_id:
                parent = None
            self._parents[agency_id] = parent
            if parent is not None:
                self._children.setdefault(parent, []).append(agency_id)

        self._descendants: Dict[str, FrozenSet[str]] = {}

    def __contains__(self, agency_id: object) -> bool:
        return to_identifier(agency_id) in self._agencies

    def __len__(self) -> int:
        return len(self._agencies)

    def parent_of(self, agency_id: AgencyId) -> Optional[str]:
        """Direct parent id, or None for roots and unknown ids."""
        return self._parents.get(to_identifier(agency_id))

    def children_of(self, agency_id: AgencyId) -> List[str]:
        """Direct children only."""
        return list(self._children.get(to_identifier(agency_id), ()))

    def roots(self) -> List[str]:
        return [agency_id for agency_id, parent in self._parents.items() if parent is None]

    def name_of(self, agency_id: AgencyId) -> str:
        """Display name, or a placeholder while names are unknown."""
        key = to_identifier(agency_id)
        agency = self._agencies.get(key)
        if agency and agency.name:
            return agency.name
        return f"Agency {key}"

    def descendants_inclusive(self, agency_id: AgencyId) -> FrozenSet[str]:
        """
        Return ``agency_id`` together with every agency below it.

        Unknown ids yield just themselves. Results are cached per id.
        """
        root = to_identifier(agency_id)
        if root is None:
            return frozenset()

        cached = self._descendants.get(root)
        if cached is not None:
            return cached

        seen = {root}
        stack = [root]
        while stack:
            current = stack.pop()
            for child in self._children.get(current, ()):
                if child not in seen:
                    seen.add(child)
                    stack.append(child)

        result = frozenset(seen)
        self._descendants[root] = result
        return result

    def scope(self, agency_id: Optional[AgencyId]) -> Optional[FrozenSet[str]]:
        """
        Agency ids an agency filter accepts.

        Returns:
            None when no agency is selected (no constraint), otherwise the
            selected agency plus all of its descendants.
        """
        if to_identifier(agency_id) is None:
            return None
        return self.descendants_inclusive(agency_id)  # type: ignore[arg-type]

    def aggregate_count(self, agency_id: AgencyId, direct_counts: Mapping[str, int]) -> int:
        """Sum per-agency counts over an agency's whole subtree."""
        return sum(direct_counts.get(node, 0) for node in self.descendants_inclusive(agency_id))
