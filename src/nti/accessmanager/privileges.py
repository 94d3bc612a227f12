#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Privileges and the registry that defines their aggregation DAG.

A privilege is either atomic (a leaf) or an aggregate of other
privileges. Both are :class:`zope.security.permission.Permission`
objects, so they can be used anywhere a permission is expected.

The registry is built once from a mapping of privilege names to the
names of their declared children and validated at that time: a
declared child that is not itself defined, or a cycle, makes the
definitions unusable and raises an
:class:`~.InvalidPrivilegeDefinitionError`. Nothing at query time
needs to cope with an inconsistent graph.

.. $Id$
"""

from collections import OrderedDict

from zope import interface

from zope.cachedescriptors.property import Lazy

from zope.security.permission import Permission

from nti.accessmanager.interfaces import JCR_ALL
from nti.accessmanager.interfaces import JCR_READ
from nti.accessmanager.interfaces import REP_WRITE
from nti.accessmanager.interfaces import JCR_WRITE
from nti.accessmanager.interfaces import JCR_REMOVE_NODE
from nti.accessmanager.interfaces import REP_READ_NODES
from nti.accessmanager.interfaces import JCR_ADD_CHILD_NODES
from nti.accessmanager.interfaces import REP_ADD_PROPERTIES
from nti.accessmanager.interfaces import REP_READ_PROPERTIES
from nti.accessmanager.interfaces import JCR_LOCK_MANAGEMENT
from nti.accessmanager.interfaces import REP_USER_MANAGEMENT
from nti.accessmanager.interfaces import JCR_MODIFY_PROPERTIES
from nti.accessmanager.interfaces import REP_ALTER_PROPERTIES
from nti.accessmanager.interfaces import REP_REMOVE_PROPERTIES
from nti.accessmanager.interfaces import JCR_REMOVE_CHILD_NODES
from nti.accessmanager.interfaces import JCR_VERSION_MANAGEMENT
from nti.accessmanager.interfaces import JCR_READ_ACCESS_CONTROL
from nti.accessmanager.interfaces import JCR_NAMESPACE_MANAGEMENT
from nti.accessmanager.interfaces import JCR_NODE_TYPE_MANAGEMENT
from nti.accessmanager.interfaces import JCR_RETENTION_MANAGEMENT
from nti.accessmanager.interfaces import JCR_LIFECYCLE_MANAGEMENT
from nti.accessmanager.interfaces import JCR_WORKSPACE_MANAGEMENT
from nti.accessmanager.interfaces import REP_PRIVILEGE_MANAGEMENT
from nti.accessmanager.interfaces import JCR_MODIFY_ACCESS_CONTROL
from nti.accessmanager.interfaces import REP_INDEX_DEFINITION_MANAGEMENT
from nti.accessmanager.interfaces import JCR_NODE_TYPE_DEFINITION_MANAGEMENT

from nti.accessmanager.interfaces import IPrivilege
from nti.accessmanager.interfaces import IAtomicPrivilege
from nti.accessmanager.interfaces import IPrivilegeRegistry
from nti.accessmanager.interfaces import IAggregatePrivilege

from nti.accessmanager.interfaces import PrivilegeCycleError
from nti.accessmanager.interfaces import UnknownPrivilegeError
from nti.accessmanager.interfaces import DanglingPrivilegeError
from nti.accessmanager.interfaces import InvalidPrivilegeDefinitionError

logger = __import__('logging').getLogger(__name__)


@interface.implementer(IPrivilege)
class Privilege(Permission):
    """
    Base class for privileges. Privileges compare and hash by id.
    """

    children = ()

    def __init__(self, id, title='', description=''):  # pylint:disable=redefined-builtin
        Permission.__init__(self, id, title or id, description)

    @property
    def name(self):
        return self.id

    @property
    def leaves(self):
        raise NotImplementedError()

    def __eq__(self, other):
        try:
            return self is other or self.id == other.id
        except AttributeError:
            return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(self.id)

    def __lt__(self, other):
        return self.id < other.id

    def __str__(self):
        return self.id

    def __repr__(self):
        return "%s('%s')" % (self.__class__.__name__, self.id)


@interface.implementer(IAtomicPrivilege)
class AtomicPrivilege(Privilege):

    @property
    def leaves(self):
        return (self,)


@interface.implementer(IAggregatePrivilege)
class AggregatePrivilege(Privilege):

    def __init__(self, id, children, title='', description=''):  # pylint:disable=redefined-builtin
        Privilege.__init__(self, id, title, description)
        self.children = tuple(children)
        if not self.children:
            raise InvalidPrivilegeDefinitionError(
                "Aggregate privilege %s has no children" % id)

    @Lazy
    def leaves(self):
        seen = set()
        result = []
        for child in self.children:
            for leaf in child.leaves:
                if leaf not in seen:
                    seen.add(leaf)
                    result.append(leaf)
        return tuple(result)

    @Lazy
    def descendants(self):
        """
        Every privilege strictly below this one.
        """
        result = set()
        for child in self.children:
            result.add(child)
            result.update(getattr(child, 'descendants', ()))
        return frozenset(result)


def expand_privileges(privileges):
    """
    Return the union of the leaf sets of the given privileges,
    deduplicated and in order.
    """
    seen = set()
    result = []
    for privilege in privileges:
        for leaf in privilege.leaves:
            if leaf not in seen:
                seen.add(leaf)
                result.append(leaf)
    return result


def _to_longest_depth(parent_depth, parent, result):
    candidate = parent_depth + 1
    for child in parent.children:
        old = result.get(child)
        if old is None or old < candidate:
            result[child] = candidate
            # keep going; everything below this child may now be deeper
            _to_longest_depth(candidate, child, result)


def build_privilege_longest_depth_map(root):
    """
    Map every privilege reachable from `root` to the number of edges on
    the longest path from `root` to it. The root itself is 0.

    A privilege reachable through several parents records the
    maximum, so in a diamond the shared descendant sorts below every
    aggregate that contains it.
    """
    result = {root: 0}
    _to_longest_depth(0, root, result)
    return result
buildPrivilegeLongestDepthMap = build_privilege_longest_depth_map


def _build_privileges(definitions):
    declared = OrderedDict()
    for name, children in definitions.items():
        if isinstance(children, str):
            children = children.split()
        declared[name] = tuple(OrderedDict.fromkeys(children or ()))

    for name, children in declared.items():
        for child in children:
            if child not in declared:
                raise DanglingPrivilegeError(
                    "Privilege %s declares undefined child %s" % (name, child))

    built = {}
    visiting = []

    def build(name):
        if name in built:
            return built[name]
        if name in visiting:
            cycle = visiting[visiting.index(name):] + [name]
            raise PrivilegeCycleError(
                "Privilege definitions contain a cycle: %s" % ' -> '.join(cycle))
        visiting.append(name)
        children = [build(child) for child in declared[name]]
        visiting.pop()
        if children:
            privilege = AggregatePrivilege(name, children)
        else:
            privilege = AtomicPrivilege(name)
        built[name] = privilege
        return privilege

    for name in declared:
        build(name)
    return OrderedDict((name, built[name]) for name in declared)


@interface.implementer(IPrivilegeRegistry)
class PrivilegeRegistry(object):
    """
    An immutable registry of privileges.

    :param definitions: A mapping from privilege name to the ordered
        names of its declared children (a sequence or a whitespace
        separated string). A privilege with no children is atomic.
    :param root: The name of the universal aggregate.
    """

    def __init__(self, definitions, root=JCR_ALL):
        self._privileges = _build_privileges(definitions)
        if root not in self._privileges:
            raise DanglingPrivilegeError("Root privilege %s is not defined" % root)
        self.root = self._privileges[root]
        if not IAggregatePrivilege.providedBy(self.root):
            raise InvalidPrivilegeDefinitionError(
                "Root privilege %s is not an aggregate" % root)
        self.aggregates = tuple(p for p in self._privileges.values()
                                if IAggregatePrivilege.providedBy(p))
        self._immediate = {}
        for aggregate in self.aggregates:
            reachable = set()
            for child in aggregate.children:
                reachable.update(getattr(child, 'descendants', ()))
            self._immediate[aggregate] = tuple(c for c in aggregate.children
                                               if c not in reachable)
        self._depth_maps = {}
        logger.debug("Loaded %d privileges (%d aggregates) rooted at %s",
                     len(self._privileges), len(self.aggregates), root)

    def _resolve(self, privilege):
        if IPrivilege.providedBy(privilege):
            return privilege
        return self.privilegeFromName(privilege)

    def privilegeFromName(self, name):
        try:
            return self._privileges[name]
        except KeyError:
            raise UnknownPrivilegeError("Unknown privilege %s" % name)

    def get(self, name, default=None):
        return self._privileges.get(name, default)

    def isAggregate(self, privilege):
        return IAggregatePrivilege.providedBy(self._resolve(privilege))

    def childrenOf(self, privilege):
        return self._resolve(privilege).children

    def immediateChildrenOf(self, privilege):
        return self._immediate.get(self._resolve(privilege), ())

    def getSupportedPrivileges(self, unused_path=None):
        # These definitions are not path dependent
        return tuple(self._privileges.values())

    def longest_depth_map(self, root=None):
        root = self.root if root is None else self._resolve(root)
        try:
            return self._depth_maps[root]
        except KeyError:
            result = self._depth_maps[root] = build_privilege_longest_depth_map(root)
            return result

    @Lazy
    def depth_map(self):
        return self.longest_depth_map()

    def __getitem__(self, name):
        return self.privilegeFromName(name)

    def __contains__(self, name):
        return getattr(name, 'id', name) in self._privileges

    def __iter__(self):
        return iter(self._privileges.values())

    def __len__(self):
        return len(self._privileges)

    def __repr__(self):
        return "<%s root=%s privileges=%d>" % (self.__class__.__name__,
                                                self.root.id,
                                                len(self._privileges))


_STANDARD_LEAVES = (
    JCR_READ_ACCESS_CONTROL,
    JCR_MODIFY_ACCESS_CONTROL,
    JCR_ADD_CHILD_NODES,
    JCR_REMOVE_CHILD_NODES,
    JCR_REMOVE_NODE,
    JCR_LOCK_MANAGEMENT,
    JCR_VERSION_MANAGEMENT,
    JCR_NODE_TYPE_MANAGEMENT,
    JCR_RETENTION_MANAGEMENT,
    JCR_LIFECYCLE_MANAGEMENT,
    JCR_WORKSPACE_MANAGEMENT,
    JCR_NODE_TYPE_DEFINITION_MANAGEMENT,
    JCR_NAMESPACE_MANAGEMENT,
    REP_PRIVILEGE_MANAGEMENT,
    REP_USER_MANAGEMENT,
    REP_READ_NODES,
    REP_READ_PROPERTIES,
    REP_ADD_PROPERTIES,
    REP_ALTER_PROPERTIES,
    REP_REMOVE_PROPERTIES,
    REP_INDEX_DEFINITION_MANAGEMENT,
)

_STANDARD_AGGREGATES = (
    (JCR_READ, (REP_READ_NODES, REP_READ_PROPERTIES)),
    (JCR_MODIFY_PROPERTIES, (REP_ADD_PROPERTIES,
                             REP_ALTER_PROPERTIES,
                             REP_REMOVE_PROPERTIES)),
    (JCR_WRITE, (JCR_MODIFY_PROPERTIES,
                 JCR_ADD_CHILD_NODES,
                 JCR_REMOVE_NODE,
                 JCR_REMOVE_CHILD_NODES)),
    (REP_WRITE, (JCR_WRITE, JCR_NODE_TYPE_MANAGEMENT)),
)


def _standard_definitions():
    result = OrderedDict((name, ()) for name in _STANDARD_LEAVES)
    result.update(_STANDARD_AGGREGATES)
    # Like the repository, jcr:all declares every other privilege
    result[JCR_ALL] = tuple(result)
    return result

#: The built-in repository privileges
STANDARD_PRIVILEGE_DEFINITIONS = _standard_definitions()


def standard_privilege_registry():
    """
    Create a registry of the built-in repository privileges.
    """
    return PrivilegeRegistry(STANDARD_PRIVILEGE_DEFINITIONS, root=JCR_ALL)


def privilege_depth_key(depth_map):
    """
    Return a sort key ordering privileges by their depth in `depth_map`
    and then by name. Privileges missing from the map sort last.
    """
    missing = len(depth_map)

    def key(privilege):
        return (depth_map.get(privilege, missing), privilege.id)
    return key
