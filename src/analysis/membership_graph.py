"""This module walks the "member-of" graph of a group.

Nested groups in AD can form diamonds and cycles, including a group that is a
member of itself. The walk keeps a visited set keyed on the lower-cased
distinguished name, so every group is expanded at most once.
"""
from collections import deque
from typing import Callable, Iterable, Optional
from loguru import logger

FetchMemberOf = Callable[[str], Iterable[str]]


def _key(group_dn: str) -> str:
    return group_dn.lower()


def resolve_ancestors(
    group_dn: str,
    fetch_member_of: FetchMemberOf,
    direct_parents: Optional[Iterable[str]] = None,
) -> set[str]:
    """Find every group reachable from a group through "member-of" edges.

    Parameters
    ----------
    group_dn
        The distinguished name of the group to start from.
    fetch_member_of
        Returns the groups that a given group is directly a member of.
        Any exception it raises is logged and the group is treated as having
        no further edges.
    direct_parents
        The "member-of" edges of the start group when the caller already
        holds them. The start group is then not fetched again.

    Returns
    -------
    set[str]
        The distinguished names of all ancestor groups, excluding the start
        group itself. Names are compared case-insensitively and the first seen
        spelling is kept.

    Examples
    --------
    >>> edges = {"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": []}
    >>> sorted(resolve_ancestors("A", lambda dn: edges[dn]))
    ['B', 'C', 'D']
    """
    start_key = _key(group_dn)
    visited: set[str] = set()
    ancestors: dict[str, str] = {}
    queue: deque[str] = deque([group_dn])

    while queue:
        current = queue.popleft()
        current_key = _key(current)
        if current_key in visited:
            continue
        visited.add(current_key)

        if current_key == start_key and direct_parents is not None:
            parents = list(direct_parents)
        else:
            try:
                parents = list(fetch_member_of(current))
            except Exception as exc:
                logger.warning(f"{current}: Unable to fetch member-of edges: {exc}")
                continue

        for parent in parents:
            parent_key = _key(parent)
            if parent_key == start_key:
                logger.debug(f"{group_dn}: Circular nesting through {current}")
                continue
            if parent_key not in ancestors:
                ancestors[parent_key] = parent
            if parent_key not in visited:
                queue.append(parent)

    return set(ancestors.values())
