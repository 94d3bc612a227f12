#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Access manager interfaces, constants and errors.

.. $Id$
"""

# pylint: disable=inherit-non-class,no-self-argument,no-method-argument

from zope import interface

from zope.schema import Iterable

from zope.security.interfaces import IPermission

from nti.schema.field import Bool
from nti.schema.field import Object
from nti.schema.field import ListOrTuple
from nti.schema.field import ValidTextLine

logger = __import__('logging').getLogger(__name__)

#: The universal aggregate privilege
JCR_ALL = 'jcr:all'

JCR_READ = 'jcr:read'
JCR_WRITE = 'jcr:write'
JCR_MODIFY_PROPERTIES = 'jcr:modifyProperties'
JCR_ADD_CHILD_NODES = 'jcr:addChildNodes'
JCR_REMOVE_NODE = 'jcr:removeNode'
JCR_REMOVE_CHILD_NODES = 'jcr:removeChildNodes'
JCR_READ_ACCESS_CONTROL = 'jcr:readAccessControl'
JCR_MODIFY_ACCESS_CONTROL = 'jcr:modifyAccessControl'
JCR_LOCK_MANAGEMENT = 'jcr:lockManagement'
JCR_VERSION_MANAGEMENT = 'jcr:versionManagement'
JCR_NODE_TYPE_MANAGEMENT = 'jcr:nodeTypeManagement'
JCR_RETENTION_MANAGEMENT = 'jcr:retentionManagement'
JCR_LIFECYCLE_MANAGEMENT = 'jcr:lifecycleManagement'
JCR_WORKSPACE_MANAGEMENT = 'jcr:workspaceManagement'
JCR_NODE_TYPE_DEFINITION_MANAGEMENT = 'jcr:nodeTypeDefinitionManagement'
JCR_NAMESPACE_MANAGEMENT = 'jcr:namespaceManagement'

REP_WRITE = 'rep:write'
REP_READ_NODES = 'rep:readNodes'
REP_READ_PROPERTIES = 'rep:readProperties'
REP_ADD_PROPERTIES = 'rep:addProperties'
REP_ALTER_PROPERTIES = 'rep:alterProperties'
REP_REMOVE_PROPERTIES = 'rep:removeProperties'
REP_PRIVILEGE_MANAGEMENT = 'rep:privilegeManagement'
REP_USER_MANAGEMENT = 'rep:userManagement'
REP_INDEX_DEFINITION_MANAGEMENT = 'rep:indexDefinitionManagement'

#: Restriction names understood by the standard restriction provider
REP_GLOB = 'rep:glob'
REP_NT_NAMES = 'rep:ntNames'
REP_PREFIXES = 'rep:prefixes'
REP_ITEM_NAMES = 'rep:itemNames'
REP_CURRENT = 'rep:current'
REP_GLOBS = 'rep:globs'
REP_SUBTREES = 'rep:subtrees'

#: Values accepted for a privilege in a modify request, in
#: application order (later values win a conflict)
PRIVILEGE_VALUE_ALLOW = 'allow'
PRIVILEGE_VALUE_GRANTED = 'granted'
PRIVILEGE_VALUE_NONE = 'none'
PRIVILEGE_VALUE_DENIED = 'denied'
PRIVILEGE_VALUE_DENY = 'deny'

PRIVILEGE_VALUES = (PRIVILEGE_VALUE_ALLOW,
                    PRIVILEGE_VALUE_GRANTED,
                    PRIVILEGE_VALUE_NONE,
                    PRIVILEGE_VALUE_DENIED,
                    PRIVILEGE_VALUE_DENY)

#: Values accepted when deleting a privilege or restriction
DELETE_VALUE_ALL = 'all'
DELETE_VALUE_ALLOW = 'allow'
DELETE_VALUE_DENY = 'deny'

DELETE_VALUES = (DELETE_VALUE_ALL,
                 DELETE_VALUE_ALLOW,
                 DELETE_VALUE_DENY)

#: Where a principal's entries are placed in an access control list
ORDER_FIRST = 'first'
ORDER_LAST = 'last'
ORDER_BEFORE = 'before '
ORDER_AFTER = 'after '


class AccessControlError(Exception):
    """
    Base class for the errors raised by this package.
    """

    code = None

    def __str__(self):
        result = Exception.__str__(self)
        if self.code is not None:
            result += '. Code:%s' % self.code
        return result


class InvalidPrivilegeDefinitionError(AccessControlError):
    """
    The privilege definitions handed to a registry are inconsistent.
    """
    code = 'InvalidPrivilegeDefinition'


class PrivilegeCycleError(InvalidPrivilegeDefinitionError):
    code = 'PrivilegeCycle'


class DanglingPrivilegeError(InvalidPrivilegeDefinitionError):
    code = 'DanglingPrivilege'


class UnknownPrivilegeError(AccessControlError, KeyError):
    code = 'UnknownPrivilege'

    __str__ = AccessControlError.__str__


class UnsupportedRestrictionError(AccessControlError):
    code = 'UnsupportedRestriction'


class InvalidOrderError(AccessControlError, ValueError):
    """
    The requested position of a principal's entries cannot be used.
    """
    code = 'InvalidOrder'


class IPrivilege(IPermission):
    """
    A named privilege. Privileges are either atomic or aggregate;
    see :class:`IAtomicPrivilege` and :class:`IAggregatePrivilege`.
    """

    name = ValidTextLine(title="The name of the privilege, the same as the id.")

    leaves = Iterable(title="The atomic privileges this privilege implies.",
                      description="Deduplicated, in declaration order. "
                      "An atomic privilege is its own only leaf.")


class IAtomicPrivilege(IPrivilege):
    """
    A terminal privilege that cannot be decomposed.
    """


class IAggregatePrivilege(IPrivilege):
    """
    A privilege that bundles other privileges.
    """

    children = ListOrTuple(title="The declared child privileges.",
                           min_length=1)


class IPrivilegeRegistry(interface.Interface):
    """
    A read-only, validated collection of privilege definitions.
    """

    root = Object(IAggregatePrivilege,
                  title="The universal aggregate privilege.")

    aggregates = ListOrTuple(title="All aggregate privileges.")

    depth_map = interface.Attribute(
        "The longest-depth index of :attr:`root`.")

    def privilegeFromName(name):
        """
        Return the privilege named `name`.

        :raises UnknownPrivilegeError: If no such privilege is defined.
        """

    def isAggregate(privilege):
        """
        Is the privilege (or privilege name) an aggregate?
        """

    def childrenOf(privilege):
        """
        Return the declared children of the privilege, in order. Empty
        for an atomic privilege.
        """

    def immediateChildrenOf(privilege):
        """
        Return the declared children that are not also reachable
        through another declared child.
        """

    def getSupportedPrivileges(path):
        """
        Return the privileges that may be used at the given resource path.
        """

    def longest_depth_map(root=None):
        """
        Return the longest-depth index for `root` (default :attr:`root`).
        """


class IRestrictionDefinition(interface.Interface):

    name = ValidTextLine(title="The restriction name.")

    requiredType = ValidTextLine(title="The property type of the values.",
                                 default='String')

    multiValue = Bool(title="Whether the restriction takes several values.",
                      default=False)


class IRestrictionProvider(interface.Interface):
    """
    Knows which restrictions are applicable at a resource path.
    """

    def getSupportedRestrictions(path):
        """
        Return a frozenset of :class:`IRestrictionDefinition` applicable
        at `path`. A `path` of None means the repository level.
        """


class ILocalRestriction(interface.Interface):
    """
    One restriction instance with its value(s).
    """

    definition = Object(IRestrictionDefinition,
                        title="The definition, if it is known.",
                        required=False)

    name = interface.Attribute("The definition name, or None.")

    values = ListOrTuple(title="The ordered values.")

    value = interface.Attribute("The first value, or None.")

    multiValue = Bool(title="Whether this is a multi-value restriction.")


class ILocalPrivilege(interface.Interface):
    """
    The allow/deny state of one privilege.
    """

    privilege = Object(IPrivilege, title="The privilege.")

    allow = Bool(title="Is the privilege allowed?", default=False)

    deny = Bool(title="Is the privilege denied?", default=False)

    allowRestrictions = Iterable(title="The restrictions of the allow side.")

    denyRestrictions = Iterable(title="The restrictions of the deny side.")

    def isNone():
        """
        Neither allowed nor denied?
        """


class IAccessControlEntry(interface.Interface):
    """
    An in-memory access control entry for one principal.
    """

    principal = ValidTextLine(title="The principal id.")

    allow = Bool(title="Is this an allow entry?")

    privileges = ListOrTuple(title="The privileges of the entry.",
                             value_type=Object(IPrivilege),
                             min_length=1)

    restrictions = Iterable(title="The restrictions of the entry.")
