#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Loading privilege and restriction definitions from configuration, and
finding the registered ones.

Definitions are read from an INI file::

    [registry]
    root = app:all

    [privileges]
    app:read =
    app:write =
    app:all = app:read app:write

    [restrictions]
    app:glob = String
    app:names = Name[]

A privilege with an empty value is atomic; otherwise the value names
its children. A restriction type ending in ``[]`` is multi-valued.

.. $Id$
"""

import os
import configparser
from collections import OrderedDict

from zope import component

from nti.accessmanager.interfaces import JCR_ALL

from nti.accessmanager.interfaces import IPrivilegeRegistry
from nti.accessmanager.interfaces import IRestrictionProvider

from nti.accessmanager.privileges import PrivilegeRegistry
from nti.accessmanager.privileges import standard_privilege_registry

from nti.accessmanager.restrictions import RestrictionProvider
from nti.accessmanager.restrictions import RestrictionDefinition
from nti.accessmanager.restrictions import standard_restriction_provider

#: Environment variable naming an INI file of privilege definitions
PRIVILEGES_ENV_VAR = 'NTI_ACCESSMANAGER_PRIVILEGES'

PRIVILEGES_SECTION = 'privileges'
RESTRICTIONS_SECTION = 'restrictions'
REGISTRY_SECTION = 'registry'

MULTI_VALUE_SUFFIX = '[]'

#: Used when no utility is registered
STANDARD_PRIVILEGE_REGISTRY = standard_privilege_registry()
STANDARD_RESTRICTION_PROVIDER = standard_restriction_provider()

logger = __import__('logging').getLogger(__name__)


def _parser():
    # Privilege names contain ':', so only '=' delimits
    parser = configparser.ConfigParser(delimiters=('=',),
                                       interpolation=None)
    parser.optionxform = str
    return parser


def read_config(source):
    """
    Return a :class:`configparser.ConfigParser` for `source`, which
    may be a path or an open file.
    """
    parser = _parser()
    if hasattr(source, 'read'):
        parser.read_file(source)
    else:
        with open(source) as f:
            parser.read_file(f)
        logger.info("Read access manager definitions from %s", source)
    return parser


def privilege_definitions(parser):
    result = OrderedDict()
    if parser.has_section(PRIVILEGES_SECTION):
        for name, children in parser.items(PRIVILEGES_SECTION):
            result[name] = tuple(children.split())
    return result


def restriction_definitions(parser):
    result = []
    if parser.has_section(RESTRICTIONS_SECTION):
        for name, value in parser.items(RESTRICTIONS_SECTION):
            value = value.strip() or 'String'
            multi = value.endswith(MULTI_VALUE_SUFFIX)
            if multi:
                value = value[:-len(MULTI_VALUE_SUFFIX)].strip() or 'String'
            result.append(RestrictionDefinition(name, value, multi))
    return result


def registry_from_config(source):
    """
    Build a :class:`~.PrivilegeRegistry` from the ``[privileges]``
    section of the INI file `source`.
    """
    parser = source if isinstance(source, configparser.RawConfigParser) else read_config(source)
    root = parser.get(REGISTRY_SECTION, 'root', fallback=JCR_ALL)
    return PrivilegeRegistry(privilege_definitions(parser), root=root)


def restriction_provider_from_config(source):
    parser = source if isinstance(source, configparser.RawConfigParser) else read_config(source)
    return RestrictionProvider(restriction_definitions(parser))


def registry_from_environment(environ=None):
    """
    Build a registry from the file named by ``$NTI_ACCESSMANAGER_PRIVILEGES``,
    or return the standard registry if it is not set.
    """
    environ = os.environ if environ is None else environ
    path = environ.get(PRIVILEGES_ENV_VAR)
    if not path:
        return standard_privilege_registry()
    return registry_from_config(path)


def get_privilege_registry():
    """
    Return the registered :class:`~.IPrivilegeRegistry`, or the standard
    registry if there isn't one.
    """
    result = component.queryUtility(IPrivilegeRegistry)
    if result is None:
        result = STANDARD_PRIVILEGE_REGISTRY
    return result


def get_restriction_provider():
    result = component.queryUtility(IRestrictionProvider)
    if result is None:
        result = STANDARD_RESTRICTION_PROVIDER
    return result

