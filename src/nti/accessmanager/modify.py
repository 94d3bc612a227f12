#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Computing a principal's modified access control entries.

Changes can be given programmatically (:func:`modify_ace`) or as
request parameters (:func:`modify_ace_from_parameters`), which use
this grammar:

``privilege@<privilege>``
    One of ``allow``, ``granted``, ``deny``, ``denied`` or ``none``.
    Several values may be given; allow wins a conflict.
``privilege@<privilege>@Delete``
    ``all``, ``allow`` or ``deny``: the side(s) to clear.
``restriction@<restriction>``
    The value(s) of a restriction to add to the active side(s) of
    every privilege of the entry.
``restriction@<privilege>@<restriction>@Allow`` (or ``@Deny``)
    The value(s) of a restriction to add to one side of one privilege.
``restriction@<restriction>@Delete``
    Remove the restriction from both sides of every privilege.
``restriction@<privilege>@<restriction>@Delete``
    ``all``, ``allow`` or ``deny``: the side(s) to remove the
    restriction from.
``order``
    Where the changed entries go in the full list, for
    :func:`modify_acl_from_parameters`: see :func:`~.place_entries`.

In both cases the principal's stored entries are loaded, changed, and
folded, and the replacement entries are returned.

.. $Id$
"""

import re
from collections import OrderedDict

from nti.accessmanager.acl import load_decisions
from nti.accessmanager.acl import place_entries
from nti.accessmanager.acl import entries_from_decisions

from nti.accessmanager.aggregation import deny
from nti.accessmanager.aggregation import none
from nti.accessmanager.aggregation import allow
from nti.accessmanager.aggregation import undeny
from nti.accessmanager.aggregation import unallow
from nti.accessmanager.aggregation import deny_restriction
from nti.accessmanager.aggregation import allow_restriction
from nti.accessmanager.aggregation import undeny_restriction
from nti.accessmanager.aggregation import undeny_restrictions
from nti.accessmanager.aggregation import unallow_restriction
from nti.accessmanager.aggregation import unallow_restrictions
from nti.accessmanager.aggregation import consolidate_aggregates
from nti.accessmanager.aggregation import allow_or_deny_restriction
from nti.accessmanager.aggregation import unallow_or_undeny_restriction

from nti.accessmanager.config import get_privilege_registry
from nti.accessmanager.config import get_restriction_provider

from nti.accessmanager.interfaces import DELETE_VALUES
from nti.accessmanager.interfaces import DELETE_VALUE_ALL
from nti.accessmanager.interfaces import DELETE_VALUE_DENY
from nti.accessmanager.interfaces import DELETE_VALUE_ALLOW

from nti.accessmanager.interfaces import PRIVILEGE_VALUES
from nti.accessmanager.interfaces import PRIVILEGE_VALUE_DENY
from nti.accessmanager.interfaces import PRIVILEGE_VALUE_NONE
from nti.accessmanager.interfaces import PRIVILEGE_VALUE_ALLOW
from nti.accessmanager.interfaces import PRIVILEGE_VALUE_DENIED
from nti.accessmanager.interfaces import PRIVILEGE_VALUE_GRANTED

from nti.accessmanager.interfaces import UnsupportedRestrictionError

from nti.accessmanager.privileges import privilege_depth_key

from nti.accessmanager.restrictions import local_restriction
from nti.accessmanager.restrictions import restriction_definition_map

#: Prefix of the privilege parameters
PRIVILEGE_PREFIX = 'privilege@'

#: Parameter naming where the changed entries go
ORDER_PARAMETER = 'order'

SIDE_ALLOW = 'Allow'
SIDE_DENY = 'Deny'

PRIVILEGE_PATTERN = re.compile(r'^privilege@(.+)(?<!@Delete)$')
PRIVILEGE_PATTERN_DELETE = re.compile(r'^privilege@(.+)@Delete$')
RESTRICTION_PATTERN = re.compile(r'^restriction@([^@]+)(@([^@]+)@(Allow|Deny))?$')
RESTRICTION_PATTERN_DELETE = re.compile(r'^restriction@([^@]+)(@([^@]+))?@Delete$')

logger = __import__('logging').getLogger(__name__)


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def parse_privilege_value(value):
    """
    Return the canonical privilege value for `value`, or None if it is
    not valid.
    """
    result = (value or '').strip().lower()
    if result not in PRIVILEGE_VALUES:
        logger.warning("Ignoring invalid privilege value %r", value)
        return None
    return result


def parse_delete_value(value):
    result = (value or '').strip().lower()
    if result not in DELETE_VALUES:
        logger.warning("Ignoring invalid delete value %r", value)
        return None
    return result


def _value_order(value):
    # deny and none are applied before allow
    return -PRIVILEGE_VALUES.index(value)


def _side_order(side):
    return {SIDE_DENY: 0, SIDE_ALLOW: 1}.get(side, 2)


class AceModifications(object):
    """
    The changes requested for one principal's entries, by privilege
    and restriction name.
    """

    def __init__(self):
        #: privilege name -> privilege values
        self.privileges = OrderedDict()
        #: privilege name -> delete values
        self.privilege_deletes = OrderedDict()
        #: (privilege name or None, restriction name, side or None, values)
        self.restrictions = []
        #: (privilege name or None, restriction name, delete values)
        self.restriction_deletes = []

    def __bool__(self):
        return bool(self.privileges or self.privilege_deletes
                    or self.restrictions or self.restriction_deletes)

    def __repr__(self):
        return "<%s privileges=%s deletes=%s restrictions=%s restriction_deletes=%s>" % (
            self.__class__.__name__,
            dict(self.privileges), dict(self.privilege_deletes),
            self.restrictions, self.restriction_deletes)


def parse_parameters(params):
    """
    Parse the request parameters `params` (a mapping from name to a
    string or list of strings) into :class:`AceModifications`.
    Parameters that are not part of the grammar are ignored.
    """
    result = AceModifications()
    for name, value in params.items():
        values = _as_list(value)
        matcher = PRIVILEGE_PATTERN_DELETE.match(name)
        if matcher is not None:
            deletes = [parse_delete_value(v) for v in values]
            result.privilege_deletes.setdefault(matcher.group(1), []).extend(
                v for v in deletes if v)
            continue

        matcher = PRIVILEGE_PATTERN.match(name)
        if matcher is not None:
            parsed = [parse_privilege_value(v) for v in values]
            result.privileges.setdefault(matcher.group(1), []).extend(
                v for v in parsed if v)
            continue

        matcher = RESTRICTION_PATTERN_DELETE.match(name)
        if matcher is not None:
            if matcher.group(2) is not None:
                deletes = [parse_delete_value(v) for v in values]
                deletes = [v for v in deletes if v]
                result.restriction_deletes.append((matcher.group(1),
                                                   matcher.group(3),
                                                   deletes))
            else:
                # without a privilege, both sides of every privilege
                result.restriction_deletes.append((None,
                                                   matcher.group(1),
                                                   [DELETE_VALUE_ALL]))
            continue

        matcher = RESTRICTION_PATTERN.match(name)
        if matcher is not None:
            if matcher.group(2) is not None:
                result.restrictions.append((matcher.group(1),
                                            matcher.group(3),
                                            matcher.group(4),
                                            values))
            else:
                result.restrictions.append((None,
                                            matcher.group(1),
                                            None,
                                            values))
    return result


def _definition(definitions, name):
    result = definitions.get(name)
    if result is None:
        raise UnsupportedRestrictionError(
            "Invalid or not supported restriction name was supplied: %s" % name)
    return result


def _apply_privilege_deletes(decisions, modifications, registry):
    for name, values in modifications.privilege_deletes.items():
        privileges = (registry.privilegeFromName(name),)
        for value in values:
            if value in (DELETE_VALUE_ALL, DELETE_VALUE_ALLOW):
                unallow(decisions, privileges)
            if value in (DELETE_VALUE_ALL, DELETE_VALUE_DENY):
                undeny(decisions, privileges)


def _apply_restriction_deletes(decisions, modifications, registry, definitions):
    for privilege_name, restriction_name, values in modifications.restriction_deletes:
        _definition(definitions, restriction_name)
        if privilege_name is None:
            privileges = list(decisions)
        else:
            privileges = (registry.privilegeFromName(privilege_name),)
        for value in values:
            if value == DELETE_VALUE_ALL:
                unallow_or_undeny_restriction(decisions, restriction_name, privileges)
            elif value == DELETE_VALUE_ALLOW:
                unallow_restriction(decisions, restriction_name, privileges)
            elif value == DELETE_VALUE_DENY:
                undeny_restriction(decisions, restriction_name, privileges)


def _apply_privilege(decisions, privilege, value):
    privileges = (privilege,)
    if value in (PRIVILEGE_VALUE_DENY, PRIVILEGE_VALUE_DENIED):
        deny(decisions, (), privileges)
    elif value in (PRIVILEGE_VALUE_ALLOW, PRIVILEGE_VALUE_GRANTED):
        allow(decisions, (), privileges)
    elif value == PRIVILEGE_VALUE_NONE:
        none(decisions, privileges)


def _apply_privileges(decisions, modifications, registry, depth_map):
    requested = [(registry.privilegeFromName(name), values)
                 for name, values in modifications.privileges.items()]
    # shallowest first, so the most specific privilege is applied last
    key = privilege_depth_key(depth_map)
    requested.sort(key=lambda item: key(item[0]))
    for privilege, values in requested:
        for value in sorted(set(values), key=_value_order):
            _apply_privilege(decisions, privilege, value)


def _apply_restrictions(decisions, modifications, registry, definitions, depth_map):
    by_privilege = OrderedDict()
    for privilege_name, restriction_name, side, values in modifications.restrictions:
        privilege = None
        if privilege_name is not None:
            privilege = registry.privilegeFromName(privilege_name)
        restriction = local_restriction(_definition(definitions, restriction_name),
                                        values)
        sides = by_privilege.setdefault(privilege, OrderedDict())
        sides.setdefault(restriction, set()).add(side)

    key = privilege_depth_key(depth_map)

    def privilege_order(privilege):
        # restrictions for every privilege go first
        if privilege is None:
            return (-1, '')
        return key(privilege)

    for privilege in sorted(by_privilege, key=privilege_order):
        if privilege is None:
            privileges = list(decisions)
        else:
            privileges = (privilege,)
        for restriction, sides in by_privilege[privilege].items():
            for side in sorted(sides, key=_side_order):
                if side == SIDE_DENY:
                    deny_restriction(decisions, restriction, privileges)
                elif side == SIDE_ALLOW:
                    allow_restriction(decisions, restriction, privileges)
                else:
                    allow_or_deny_restriction(decisions, restriction, privileges)


def apply_modifications(decisions, modifications, registry, definitions, depth_map):
    """
    Apply `modifications` to `decisions`: privilege deletes, then
    restriction deletes, then privilege values, then restrictions.

    :param definitions: A mapping from restriction name to the
        :class:`.IRestrictionDefinition` supported at the resource.
    :raises UnsupportedRestrictionError: For a restriction name not in
        `definitions`.
    :raises UnknownPrivilegeError: For an unknown privilege name.
    """
    _apply_privilege_deletes(decisions, modifications, registry)
    _apply_restriction_deletes(decisions, modifications, registry, definitions)
    _apply_privileges(decisions, modifications, registry, depth_map)
    _apply_restrictions(decisions, modifications, registry, definitions, depth_map)
    return decisions


def _collaborators(registry, restriction_provider):
    if registry is None:
        registry = get_privilege_registry()
    if restriction_provider is None:
        restriction_provider = get_restriction_provider()
    return registry, restriction_provider


def modify_ace(entries, principal, path='/', privileges=None,
               restrictions=None, mv_restrictions=None,
               remove_restriction_names=None, registry=None,
               restriction_provider=None):
    """
    Compute the entries of `principal` after a change.

    :param entries: The stored entries; only those of `principal` are used.
    :param privileges: A mapping from privilege name (optionally with a
        ``privilege@`` prefix) to a privilege value.
    :param restrictions: A mapping from restriction name to a value.
    :param mv_restrictions: A mapping from restriction name to a list
        of values.
    :param remove_restriction_names: Restriction names to remove from
        the stored entries first.
    :return: The replacement entries of `principal`.
    """
    registry, restriction_provider = _collaborators(registry, restriction_provider)
    definitions = restriction_definition_map(restriction_provider, path)
    depth_map = registry.depth_map

    decisions = load_decisions(entries, principal)

    if remove_restriction_names:
        for lp in list(decisions.values()):
            if lp.allow:
                unallow_restrictions(decisions, remove_restriction_names, (lp.privilege,))
            if lp.deny:
                undeny_restrictions(decisions, remove_restriction_names, (lp.privilege,))

    local_restrictions = set()
    for name, value in (restrictions or {}).items():
        local_restrictions.add(local_restriction(_definition(definitions, name), value))
    for name, values in (mv_restrictions or {}).items():
        local_restrictions.add(local_restriction(_definition(definitions, name),
                                                 _as_list(values)))

    by_value = OrderedDict((value, []) for value in PRIVILEGE_VALUES)
    for name, value in (privileges or {}).items():
        if name.startswith(PRIVILEGE_PREFIX):
            name = name[len(PRIVILEGE_PREFIX):]
        privilege = registry.privilegeFromName(name)
        value = parse_privilege_value(value)
        if value is not None:
            by_value[value].append(privilege)

    for value, targets in by_value.items():
        if not targets:
            continue
        if value in (PRIVILEGE_VALUE_ALLOW, PRIVILEGE_VALUE_GRANTED):
            allow(decisions, local_restrictions, targets)
        elif value in (PRIVILEGE_VALUE_DENY, PRIVILEGE_VALUE_DENIED):
            deny(decisions, local_restrictions, targets)
        else:
            none(decisions, targets)

    consolidate_aggregates(decisions, depth_map, registry, path)
    return entries_from_decisions(decisions, depth_map, principal)


def modify_ace_from_parameters(entries, principal, path, params,
                               registry=None, restriction_provider=None):
    """
    Compute the entries of `principal` after the changes described by
    the request parameters `params`.
    """
    registry, restriction_provider = _collaborators(registry, restriction_provider)
    definitions = restriction_definition_map(restriction_provider, path)
    depth_map = registry.depth_map

    decisions = load_decisions(entries, principal)
    modifications = parse_parameters(params)
    logger.debug("Modifying entries of %s at %s: %s", principal, path, modifications)
    apply_modifications(decisions, modifications, registry, definitions, depth_map)
    consolidate_aggregates(decisions, depth_map, registry, path)
    return entries_from_decisions(decisions, depth_map, principal)


def modify_acl(acl, principal, path='/', order=None, **kwargs):
    """
    Like :func:`modify_ace`, but return all of `acl` with the
    principal's entries replaced and placed according to `order`
    (see :func:`~.place_entries`). Other keyword arguments are passed
    to :func:`modify_ace`.
    """
    entries = modify_ace(acl, principal, path, **kwargs)
    return place_entries(acl, principal, entries, order)


def modify_acl_from_parameters(acl, principal, path, params,
                               registry=None, restriction_provider=None):
    """
    Like :func:`modify_ace_from_parameters`, placing the new entries
    in `acl` according to the ``order`` parameter.
    """
    entries = modify_ace_from_parameters(acl, principal, path, params,
                                         registry=registry,
                                         restriction_provider=restriction_provider)
    order = params.get(ORDER_PARAMETER)
    if isinstance(order, (list, tuple)):
        order = order[0] if order else None
    return place_entries(acl, principal, entries, order)


# camelCase aliases, matching the interface method names
modifyAce = modify_ace
