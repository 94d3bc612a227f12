#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Expanding privilege decisions onto leaf privileges, and folding them
back up into aggregates.

Every function here that takes privileges first expands them to their
leaf privileges (an aggregate is never written into the map by these
functions) and then applies the same change to each leaf. They mutate
the :class:`~.DecisionMap` in place and also return it. None of them
raise for privileges that are not in the map, and applying the same
call twice has the same effect as applying it once.

When both sides of a leaf end up active with equal restrictions, the
side that was just set wins and the other is cleared.

After all changes are made, :func:`consolidate_aggregates` folds the
leaf decisions into the most specific aggregates that represent them
exactly.

.. $Id$
"""

from nti.accessmanager.privileges import expand_privileges

logger = __import__('logging').getLogger(__name__)


def _restriction_set(restrictions):
    if restrictions is None:
        return frozenset()
    return frozenset(restrictions)


def allow(decisions, restrictions, privileges):
    restrictions = _restriction_set(restrictions)
    for leaf in expand_privileges(privileges):
        lp = decisions.local_privilege(leaf)
        lp.setAllow(True)
        lp.mergeAllowRestrictions(restrictions)
        if lp.deny and lp.sameAllowAndDenyRestrictions():
            lp.setDeny(False)
    return decisions


def deny(decisions, restrictions, privileges):
    restrictions = _restriction_set(restrictions)
    for leaf in expand_privileges(privileges):
        lp = decisions.local_privilege(leaf)
        lp.setDeny(True)
        lp.mergeDenyRestrictions(restrictions)
        if lp.allow and lp.sameAllowAndDenyRestrictions():
            lp.setAllow(False)
    return decisions


def unallow(decisions, privileges):
    for leaf in expand_privileges(privileges):
        lp = decisions.get(leaf)
        if lp is not None:
            lp.setAllow(False)
            decisions.discard_if_none(leaf)
    return decisions


def undeny(decisions, privileges):
    for leaf in expand_privileges(privileges):
        lp = decisions.get(leaf)
        if lp is not None:
            lp.setDeny(False)
            decisions.discard_if_none(leaf)
    return decisions


def none(decisions, privileges):
    """
    Clear both sides of every leaf of `privileges`.
    """
    for leaf in expand_privileges(privileges):
        decisions.pop(leaf, None)
    return decisions


def allow_restriction(decisions, restriction, privileges):
    """
    Allow every leaf of `privileges` and add `restriction` to the allow
    side, replacing a restriction of the same name.
    """
    return allow(decisions, (restriction,), privileges)


def deny_restriction(decisions, restriction, privileges):
    return deny(decisions, (restriction,), privileges)


def unallow_restrictions(decisions, names, privileges):
    """
    Remove the named restrictions from the allow side. The allow flag
    is left alone, even when no restrictions remain. If the allow side
    then has the same restrictions as an active deny side, the deny
    side is cleared.
    """
    for leaf in expand_privileges(privileges):
        lp = decisions.get(leaf)
        if lp is not None:
            lp.unsetAllowRestrictions(names)
            if lp.allow and lp.deny and lp.sameAllowAndDenyRestrictions():
                lp.setDeny(False)
    return decisions


def undeny_restrictions(decisions, names, privileges):
    for leaf in expand_privileges(privileges):
        lp = decisions.get(leaf)
        if lp is not None:
            lp.unsetDenyRestrictions(names)
            if lp.allow and lp.deny and lp.sameAllowAndDenyRestrictions():
                lp.setAllow(False)
    return decisions


def unallow_restriction(decisions, name, privileges):
    return unallow_restrictions(decisions, (name,), privileges)


def undeny_restriction(decisions, name, privileges):
    return undeny_restrictions(decisions, (name,), privileges)


def allow_or_deny_restriction(decisions, restriction, privileges):
    """
    Add `restriction` to whichever sides are active for each leaf of
    `privileges`. Leaves that are neither allowed nor denied are left
    alone. If both sides are active and end up with the same
    restrictions, allow wins.
    """
    for leaf in expand_privileges(privileges):
        lp = decisions.get(leaf)
        if lp is None:
            continue
        if lp.allow:
            lp.mergeAllowRestrictions((restriction,))
        if lp.deny:
            lp.mergeDenyRestrictions((restriction,))
        if lp.allow and lp.deny and lp.sameAllowAndDenyRestrictions():
            lp.setDeny(False)
    return decisions


def unallow_or_undeny_restrictions(decisions, names, privileges):
    """
    Remove the named restrictions from both sides. If both sides are
    active and end up with the same restrictions, allow wins.
    """
    for leaf in expand_privileges(privileges):
        lp = decisions.get(leaf)
        if lp is not None:
            lp.unsetAllowRestrictions(names)
            lp.unsetDenyRestrictions(names)
            if lp.allow and lp.deny and lp.sameAllowAndDenyRestrictions():
                lp.setDeny(False)
    return decisions


def unallow_or_undeny_restriction(decisions, name, privileges):
    return unallow_or_undeny_restrictions(decisions, (name,), privileges)


class _Side(object):

    def __init__(self, name):
        self.name = name
        self._restrictions = name + 'Restrictions'
        self._setter = 'set' + name.capitalize()
        self._restrictions_setter = 'set' + name.capitalize() + 'Restrictions'

    def isActive(self, lp):
        return getattr(lp, self.name)

    def restrictions(self, lp):
        return getattr(lp, self._restrictions)

    def clear(self, lp):
        getattr(lp, self._setter)(False)

    def assign(self, lp, restrictions):
        getattr(lp, self._setter)(True)
        getattr(lp, self._restrictions_setter)(restrictions)

    def __repr__(self):
        return self.name

_SIDES = (_Side('allow'), _Side('deny'))


def _fold(decisions, aggregate, children, side):
    entries = [decisions.get(child) for child in children]
    if not entries:
        return False
    for entry in entries:
        if entry is None or not side.isActive(entry):
            return False
    common = side.restrictions(entries[0])
    for entry in entries[1:]:
        if side.restrictions(entry) != common:
            return False

    for child, entry in zip(children, entries):
        side.clear(entry)
        decisions.discard_if_none(child)
    side.assign(decisions.local_privilege(aggregate), common)
    logger.debug("Folded %s of %d privileges into %s",
                 side, len(children), aggregate)
    return True


def _aggregates_by_depth(registry, depth_map, path):
    result = [p for p in registry.getSupportedPrivileges(path)
              if p in depth_map and registry.isAggregate(p)]
    # deepest first; the name keeps equal depths stable
    result.sort(key=lambda p: (-depth_map[p], p.id))
    return result


def consolidate_aggregates(decisions, depth_map, registry, path='/'):
    """
    Fold the decisions in `decisions` into aggregate privileges.

    For each aggregate supported at `path`, deepest first, and for each
    side independently: when every immediate child of the aggregate has
    that side set, with equal restrictions, the side is moved from the
    children to the aggregate. Children left with neither side are
    removed. Anything short of full coverage leaves the children as
    they are. Sweeps repeat until nothing more folds.

    :param depth_map: The longest-depth index from the universal root,
        see :func:`~.build_privilege_longest_depth_map`. Aggregates
        missing from it are not folded.
    :param registry: The :class:`~.IPrivilegeRegistry` that supplies
        the aggregates and their immediate children.
    :return: The same `decisions` mapping.
    """
    if not decisions:
        return decisions
    aggregates = _aggregates_by_depth(registry, depth_map, path)
    changed = True
    while changed:
        changed = False
        for aggregate in aggregates:
            children = registry.immediateChildrenOf(aggregate)
            for side in _SIDES:
                if _fold(decisions, aggregate, children, side):
                    changed = True
    return decisions


# camelCase aliases, matching the interface method names
allowRestriction = allow_restriction
denyRestriction = deny_restriction
unallowRestriction = unallow_restriction
undenyRestriction = undeny_restriction
unallowRestrictions = unallow_restrictions
undenyRestrictions = undeny_restrictions
allowOrDenyRestriction = allow_or_deny_restriction
unallowOrUndenyRestriction = unallow_or_undeny_restriction
unallowOrUndenyRestrictions = unallow_or_undeny_restrictions
consolidateAggregates = consolidate_aggregates
