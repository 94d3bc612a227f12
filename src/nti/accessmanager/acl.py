#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
In-memory access control entries, and converting between them and
decision maps.

.. $Id$
"""

from collections import OrderedDict

from zope import interface

from nti.accessmanager.aggregation import deny
from nti.accessmanager.aggregation import allow
from nti.accessmanager.aggregation import consolidate_aggregates

from nti.accessmanager.config import get_privilege_registry

from nti.accessmanager.interfaces import ORDER_LAST
from nti.accessmanager.interfaces import ORDER_AFTER
from nti.accessmanager.interfaces import ORDER_FIRST
from nti.accessmanager.interfaces import ORDER_BEFORE

from nti.accessmanager.interfaces import IPrivilege
from nti.accessmanager.interfaces import IAccessControlEntry

from nti.accessmanager.interfaces import InvalidOrderError

from nti.accessmanager.localprivilege import DecisionMap

from nti.accessmanager.privileges import privilege_depth_key

logger = __import__('logging').getLogger(__name__)


@interface.implementer(IAccessControlEntry)
class AccessControlEntry(object):
    """
    One allow or deny entry for a principal. Entries are not persisted;
    they are what a decision map is loaded from and rendered into.
    """

    @classmethod
    def allowing(cls, principal, privileges, restrictions=(), registry=None):
        """
        :return: An entry allowing `principal` the given privileges.

        :param privileges: :class:`.IPrivilege` objects or their names,
            which are looked up in `registry` (by default, the
            registered privilege registry).
        :param restrictions: :class:`.ILocalRestriction` objects
            qualifying the entry.
        """
        return cls(principal, True, privileges, restrictions, registry=registry)

    @classmethod
    def denying(cls, principal, privileges, restrictions=(), registry=None):
        return cls(principal, False, privileges, restrictions, registry=registry)

    def __init__(self, principal, allow, privileges, restrictions=(), registry=None):
        self.principal = principal
        self.allow = bool(allow)
        if isinstance(privileges, str) or IPrivilege.providedBy(privileges):
            privileges = (privileges,)
        resolved = []
        for privilege in privileges:
            if not IPrivilege.providedBy(privilege):
                registry = registry if registry is not None else get_privilege_registry()
                privilege = registry.privilegeFromName(privilege)
            resolved.append(privilege)
        assert resolved, "Must provide a privilege"
        self.privileges = tuple(resolved)
        self.restrictions = frozenset(restrictions or ())

    def __eq__(self, other):
        try:
            return self is other or (self.principal == other.principal
                                     and self.allow == other.allow
                                     and self.privileges == other.privileges
                                     and self.restrictions == other.restrictions)
        except AttributeError:
            return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.principal, self.allow, self.privileges, self.restrictions))

    def __repr__(self):
        restrictions = ''
        if self.restrictions:
            restrictions = ' ' + repr(sorted(self.restrictions, key=repr))
        return "<%s: %s,%s,%s%s>" % (self.__class__.__name__,
                                     'allow' if self.allow else 'deny',
                                     self.principal,
                                     [p.id for p in self.privileges],
                                     restrictions)


def load_decisions(entries, principal=None):
    """
    Replay `entries`, in order, into a new :class:`~.DecisionMap`.

    :param principal: If given, only the entries of this principal
        are used.
    """
    result = DecisionMap()
    for entry in entries:
        if principal is not None and entry.principal != principal:
            continue
        if entry.allow:
            allow(result, entry.restrictions, entry.privileges)
        else:
            deny(result, entry.restrictions, entry.privileges)
    return result


def _grouped(local_privileges, restrictions_of, key):
    groups = {}
    for lp in local_privileges:
        groups.setdefault(restrictions_of(lp), []).append(lp.privilege)
    result = []
    for restrictions, privileges in groups.items():
        privileges.sort(key=key)
        result.append((restrictions, privileges))
    result.sort(key=lambda item: key(item[1][0]))
    return result


def entries_from_decisions(decisions, depth_map, principal):
    """
    Render `decisions` as the entries of `principal`.

    Privileges that share a side and an equal set of restrictions are
    combined into one entry. Deny entries come before allow entries;
    within each, entries are ordered by their shallowest privilege, and
    the privileges of an entry by depth and then name.
    """
    key = privilege_depth_key(depth_map)
    result = []
    for restrictions, privileges in _grouped(decisions.denied(),
                                             lambda lp: lp.denyRestrictions,
                                             key):
        result.append(AccessControlEntry(principal, False, privileges, restrictions))
    for restrictions, privileges in _grouped(decisions.allowed(),
                                             lambda lp: lp.allowRestrictions,
                                             key):
        result.append(AccessControlEntry(principal, True, privileges, restrictions))
    return result


def _principals(entries):
    result = []
    for entry in entries:
        if entry.principal not in result:
            result.append(entry.principal)
    return result


def _insertion_index(remaining, order):
    if order == ORDER_FIRST:
        return 0
    if order == ORDER_LAST:
        return len(remaining)

    if order.startswith(ORDER_BEFORE):
        other = order[len(ORDER_BEFORE):]
        for index, entry in enumerate(remaining):
            if entry.principal == other:
                return index
        raise InvalidOrderError("No entry was found for the specified principal: %s" % other)

    if order.startswith(ORDER_AFTER):
        other = order[len(ORDER_AFTER):]
        for index in range(len(remaining) - 1, -1, -1):
            if remaining[index].principal == other:
                return index + 1
        raise InvalidOrderError("No entry was found for the specified principal: %s" % other)

    try:
        position = int(order)
    except ValueError:
        raise InvalidOrderError("Illegal value for the order parameter: %s" % order)
    if position > len(remaining):
        raise InvalidOrderError("Index value is too large: %s" % position)
    # the position counts principals, not entries
    principals = _principals(remaining)
    if 0 <= position < len(principals):
        target = principals[position]
        for index, entry in enumerate(remaining):
            if entry.principal == target:
                return index
    return len(remaining)


def place_entries(acl, principal, entries, order=None):
    """
    Return a copy of the list `acl` in which the entries of `principal`
    are replaced by `entries`.

    :param order: Where to put the new entries. One of ``first``,
        ``last``, ``before <principal>``, ``after <principal>``, or
        the index of a principal in the list. If not given, the
        entries go where the principal's entries were, or last.
    :raises InvalidOrderError: If `order` can't be used.
    """
    acl = list(acl)
    if not order:
        order = ORDER_LAST
        principals = _principals(acl)
        if principal in principals:
            order = str(principals.index(principal))
    remaining = [entry for entry in acl if entry.principal != principal]
    index = _insertion_index(remaining, order)
    return remaining[:index] + list(entries) + remaining[index:]


def delete_entries(acl, principals):
    """
    Return a copy of the list `acl` without the entries of any of
    `principals`.
    """
    principals = set(principals or ())
    result = [entry for entry in acl if entry.principal not in principals]
    removed = set(entry.principal for entry in acl if entry.principal in principals)
    for principal in sorted(principals - removed):
        logger.warning("No access control entry was found to be deleted for principal: %s",
                       principal)
    return result


def _folded(entries, principal, registry, path):
    decisions = load_decisions(entries, principal)
    return consolidate_aggregates(decisions, registry.depth_map, registry, path)


def get_decisions(acl, principal, path='/', registry=None):
    """
    Return the folded :class:`~.DecisionMap` of `principal` in `acl`.
    The map is empty if the principal has no entries.
    """
    registry = registry if registry is not None else get_privilege_registry()
    return _folded(acl, principal, registry, path)


def get_all_decisions(acl, path='/', registry=None):
    """
    Return an ordered mapping from each principal in `acl`, in the
    order they first appear, to its folded :class:`~.DecisionMap`.
    """
    registry = registry if registry is not None else get_privilege_registry()
    result = OrderedDict()
    for principal in _principals(acl):
        result[principal] = _folded(acl, principal, registry, path)
    return result
