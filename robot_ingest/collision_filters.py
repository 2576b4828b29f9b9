"""Collision filter groups.

Groups are collected while the document is walked and resolved once the walk
is complete. Resolution works on declared membership only: a pair of distinct
links is filtered if a group holding one of them ignores a group holding the
other, or if both belong to a self-filtering group. Every applicable rule
filters; no rule ever un-filters a pair.
"""

from collections import defaultdict
from collections.abc import Iterable
from itertools import combinations

from lxml import etree

from .attributes import drake, require_attribute
from .context import ParseContext
from .model import CollisionFilterGroupSpec

__all__ = ["parse_collision_filter_group", "resolve_filtered_pairs", "apply_collision_filter_groups"]


def _missing(tag: str, attribute: str) -> str:
    return f'The tag <drake:{tag}> does not specify the required attribute "{attribute}".'


def parse_collision_filter_group(ctx: ParseContext, group_elem: etree._Element) -> CollisionFilterGroupSpec | None:
    """Parse a <drake:collision_filter_group> element and record it for resolution

    A member or ignored-group reference with a missing attribute is reported
    and skipped; the rest of the group is kept.

    Args:
        ctx: Parse context
        group_elem: Collision filter group element

    Returns:
        The recorded group, or None if the group itself was rejected
    """
    try:
        name = require_attribute(group_elem, "name", _missing("collision_filter_group", "name"))
        ctx.index.groups.check_unique(name)
    except ValueError as e:
        ctx.diagnostic.error(group_elem, str(e))
        return None

    members = set()
    for member_elem in group_elem.findall(drake("member")):
        try:
            link = require_attribute(member_elem, "link", _missing("member", "link"))
            ctx.resolve_link(link, "drake:member")
        except ValueError as e:
            ctx.diagnostic.error(member_elem, str(e))
            continue
        members.add(link)

    ignored_groups = set()
    for ignored_elem in group_elem.findall(drake("ignored_collision_filter_group")):
        try:
            ignored_groups.add(require_attribute(ignored_elem, "name", _missing("ignored_collision_filter_group", "name")))
        except ValueError as e:
            ctx.diagnostic.error(ignored_elem, str(e))

    group = CollisionFilterGroupSpec(
        name=name,
        members=frozenset(members),
        ignored_groups=frozenset(ignored_groups),
        self_filtering=group_elem.get(drake("self_collide")) != "true",
        **ctx.metadata(group_elem),
    )
    ctx.index.groups.add(name, len(ctx.index.groups), group)
    return group


def resolve_filtered_pairs(groups: Iterable[CollisionFilterGroupSpec]) -> set[frozenset[str]]:
    """Turn group declarations into the set of filtered link pairs

    Ignored group names that match no group have no effect.

    Args:
        groups: Collision filter groups of one document

    Returns:
        Set of unordered pairs of link names whose collisions are filtered
    """
    groups_by_name = {group.name: group for group in groups}

    link_groups: dict[str, set[str]] = defaultdict(set)
    for group in groups_by_name.values():
        for link in group.members:
            link_groups[link].add(group.name)

    filtered = set()
    for link_a, link_b in combinations(sorted(link_groups), 2):
        if _is_filtered(groups_by_name, link_groups[link_a], link_groups[link_b]):
            filtered.add(frozenset((link_a, link_b)))

    return filtered


def _is_filtered(groups_by_name: dict[str, CollisionFilterGroupSpec], groups_a: set[str], groups_b: set[str]) -> bool:
    if any(groups_by_name[name].self_filtering for name in groups_a & groups_b):
        return True

    for name in groups_a:
        if groups_by_name[name].ignored_groups & groups_b:
            return True

    for name in groups_b:
        if groups_by_name[name].ignored_groups & groups_a:
            return True

    return False


def apply_collision_filter_groups(ctx: ParseContext) -> set[frozenset[str]]:
    """Resolve the groups recorded during the walk and forward the filtered pairs to the builder

    Args:
        ctx: Parse context after the walk

    Returns:
        Set of filtered link-name pairs
    """
    groups = [entry.spec for entry in ctx.index.groups.entries()]
    filtered = resolve_filtered_pairs(groups)

    for pair in sorted(filtered, key=sorted):
        link_a, link_b = sorted(pair)
        ctx.builder.exclude_collisions_between(
            ctx.resolve_link(link_a, "drake:member"), ctx.resolve_link(link_b, "drake:member")
        )

    return filtered
