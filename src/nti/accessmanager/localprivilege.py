#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
The allow/deny decision for a single privilege and the map of such
decisions that the aggregation functions work on.

.. $Id$
"""

from zope import interface

from nti.accessmanager.interfaces import ILocalPrivilege

logger = __import__('logging').getLogger(__name__)


def merge_restrictions(existing, restrictions):
    """
    Return `existing` with `restrictions` added. A restriction replaces
    any existing restriction with the same name; restrictions without a
    definition never replace anything.
    """
    restrictions = frozenset(restrictions or ())
    if not restrictions:
        return frozenset(existing)
    names = set(r.name for r in restrictions if r.name is not None)
    kept = [r for r in existing if r.name is None or r.name not in names]
    return frozenset(kept).union(restrictions)


def remove_restrictions(existing, names):
    """
    Return `existing` without any restriction named in `names`.
    """
    names = set(names or ())
    return frozenset(r for r in existing if r.name not in names)


@interface.implementer(ILocalPrivilege)
class LocalPrivilege(object):
    """
    The allow and deny state of one privilege.

    The two sides are independent: a privilege may be both allowed and
    denied as long as the two sides carry different restrictions.
    Clearing a side also clears its restrictions.
    """

    __hash__ = None

    def __init__(self, privilege):
        self.privilege = privilege
        self.allow = False
        self.deny = False
        self.allowRestrictions = frozenset()
        self.denyRestrictions = frozenset()

    @property
    def name(self):
        return self.privilege.id

    def isNone(self):
        return not self.allow and not self.deny

    def setAllow(self, allow):
        self.allow = bool(allow)
        if not self.allow:
            self.allowRestrictions = frozenset()

    def setDeny(self, deny):
        self.deny = bool(deny)
        if not self.deny:
            self.denyRestrictions = frozenset()

    def setAllowRestrictions(self, restrictions):
        self.allowRestrictions = frozenset(restrictions or ())

    def setDenyRestrictions(self, restrictions):
        self.denyRestrictions = frozenset(restrictions or ())

    def mergeAllowRestrictions(self, restrictions):
        self.allowRestrictions = merge_restrictions(self.allowRestrictions,
                                                    restrictions)

    def mergeDenyRestrictions(self, restrictions):
        self.denyRestrictions = merge_restrictions(self.denyRestrictions,
                                                   restrictions)

    def unsetAllowRestrictions(self, names):
        self.allowRestrictions = remove_restrictions(self.allowRestrictions,
                                                     names)

    def unsetDenyRestrictions(self, names):
        self.denyRestrictions = remove_restrictions(self.denyRestrictions,
                                                    names)

    def sameAllowRestrictions(self, restrictions):
        return self.allowRestrictions == frozenset(restrictions or ())

    def sameDenyRestrictions(self, restrictions):
        return self.denyRestrictions == frozenset(restrictions or ())

    def sameAllowAndDenyRestrictions(self):
        return self.allowRestrictions == self.denyRestrictions

    def __eq__(self, other):
        try:
            return self is other or (self.privilege == other.privilege
                                     and self.allow == other.allow
                                     and self.deny == other.deny
                                     and self.allowRestrictions == other.allowRestrictions
                                     and self.denyRestrictions == other.denyRestrictions)
        except AttributeError:
            return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __repr__(self):
        return "<%s %s allow=%s%s deny=%s%s>" % (
            self.__class__.__name__,
            self.name,
            self.allow, sorted(self.allowRestrictions, key=repr) if self.allowRestrictions else '',
            self.deny, sorted(self.denyRestrictions, key=repr) if self.denyRestrictions else '')


class DecisionMap(dict):
    """
    A dictionary from privilege to :class:`LocalPrivilege`.

    Entries that are neither allowed nor denied are not kept.
    """

    def local_privilege(self, privilege):
        """
        Return the entry for `privilege`, creating it if needed.
        """
        result = self.get(privilege)
        if result is None:
            result = self[privilege] = LocalPrivilege(privilege)
        return result

    def discard_if_none(self, privilege):
        entry = self.get(privilege)
        if entry is not None and entry.isNone():
            del self[privilege]

    def allowed(self):
        return [lp for lp in self.values() if lp.allow]

    def denied(self):
        return [lp for lp in self.values() if lp.deny]

    def prune(self):
        """
        Remove every entry that is neither allowed nor denied.
        """
        for privilege in [p for p, lp in self.items() if lp.isNone()]:
            del self[privilege]
        return self

    def __repr__(self):
        return "%s(%s)" % (self.__class__.__name__,
                           sorted(self.values(), key=lambda lp: lp.name))
