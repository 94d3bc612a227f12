#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Restriction definitions, restriction instances and the providers that
say which restrictions apply at a resource path.

.. $Id$
"""

from zope import interface

from nti.externalization.representation import WithRepr

from nti.schema.eqhash import EqHash

from nti.schema.fieldproperty import createDirectFieldProperties

from nti.schema.schema import SchemaConfigured

from nti.accessmanager.interfaces import REP_GLOB
from nti.accessmanager.interfaces import REP_GLOBS
from nti.accessmanager.interfaces import REP_CURRENT
from nti.accessmanager.interfaces import REP_NT_NAMES
from nti.accessmanager.interfaces import REP_PREFIXES
from nti.accessmanager.interfaces import REP_SUBTREES
from nti.accessmanager.interfaces import REP_ITEM_NAMES

from nti.accessmanager.interfaces import ILocalRestriction
from nti.accessmanager.interfaces import IRestrictionProvider
from nti.accessmanager.interfaces import IRestrictionDefinition

logger = __import__('logging').getLogger(__name__)


@WithRepr
@EqHash('name', 'multiValue')
@interface.implementer(IRestrictionDefinition)
class RestrictionDefinition(SchemaConfigured):
    createDirectFieldProperties(IRestrictionDefinition)

    def __init__(self, name=None, requiredType='String', multiValue=False, **kwargs):
        SchemaConfigured.__init__(self, name=name, requiredType=requiredType,
                                  multiValue=multiValue, **kwargs)


@interface.implementer(ILocalRestriction)
class LocalRestriction(object):
    """
    A restriction with its value(s).

    If the definition is multi-valued, `values` is the ordered
    sequence of values (a lone scalar is wrapped). Otherwise `values`
    holds just the single value. Without a definition the arity is taken from
    the argument: a list or tuple makes a multi-value restriction.

    Two restrictions are equal when their definitions have the same
    name (or both are missing), they have the same arity, and their
    values are equal in order.
    """

    __slots__ = ('definition', 'values', 'multiValue')

    def __init__(self, definition, values):
        self.definition = definition
        if definition is not None:
            multi = definition.multiValue
        else:
            multi = isinstance(values, (list, tuple))
        if multi:
            if values is None:
                values = ()
            elif not isinstance(values, (list, tuple)):
                values = (values,)
            values = tuple(values)
        else:
            values = () if values is None else (values,)
        self.values = values
        self.multiValue = multi

    @property
    def name(self):
        return self.definition.name if self.definition is not None else None

    @property
    def value(self):
        return self.values[0] if self.values else None

    @classmethod
    def cloneWithNewValues(cls, restriction, values):
        return cls(restriction.definition, values)

    def _key(self):
        return (self.name, self.multiValue, self.values)

    def __eq__(self, other):
        if not isinstance(other, LocalRestriction):
            return NotImplemented
        return self is other or self._key() == other._key()

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return "%s(name=%s, values=%r)" % (self.__class__.__name__,
                                           self.name,
                                           list(self.values) if self.multiValue else self.value)


def local_restriction(definition, value):
    """
    Create a :class:`LocalRestriction` for `definition` from a raw
    value, which may be a single value or a list of values.
    A single-value definition given a list uses its first element.
    """
    if not definition.multiValue and isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return LocalRestriction(definition, value)


@interface.implementer(IRestrictionProvider)
class RestrictionProvider(object):
    """
    Supports a fixed set of definitions at every resource path, and
    none at the repository level (``path is None``).
    """

    def __init__(self, definitions=()):
        self.definitions = frozenset(definitions)

    def getSupportedRestrictions(self, path):
        if path is None:
            return frozenset()
        return self.definitions


@interface.implementer(IRestrictionProvider)
class CompositeRestrictionProvider(object):

    def __init__(self, providers=()):
        self.providers = tuple(providers)

    def getSupportedRestrictions(self, path):
        result = set()
        for provider in self.providers:
            result.update(provider.getSupportedRestrictions(path))
        return frozenset(result)


def restriction_definition_map(provider, path):
    """
    Return a dictionary from restriction name to definition for the
    restrictions `provider` supports at `path`.
    """
    return {d.name: d for d in provider.getSupportedRestrictions(path)}


STANDARD_RESTRICTION_DEFINITIONS = (
    RestrictionDefinition(REP_GLOB, 'String', False),
    RestrictionDefinition(REP_NT_NAMES, 'Name', True),
    RestrictionDefinition(REP_PREFIXES, 'String', True),
    RestrictionDefinition(REP_ITEM_NAMES, 'Name', True),
    RestrictionDefinition(REP_CURRENT, 'String', True),
    RestrictionDefinition(REP_GLOBS, 'String', True),
    RestrictionDefinition(REP_SUBTREES, 'String', True),
)


def standard_restriction_provider():
    return RestrictionProvider(STANDARD_RESTRICTION_DEFINITIONS)
