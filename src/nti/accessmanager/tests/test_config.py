#!/usr/bin/env python
# -*- coding: utf-8 -*-

# pylint: disable=protected-access,too-many-public-methods

from hamcrest import is_
from hamcrest import calling
from hamcrest import raises
from hamcrest import contains_exactly
from hamcrest import has_length
from hamcrest import assert_that
from hamcrest import same_instance

from nti.testing.matchers import verifiably_provides

import os
import shutil
import tempfile
import unittest
from io import StringIO

from zope import component

from nti.accessmanager.config import PRIVILEGES_ENV_VAR
from nti.accessmanager.config import STANDARD_PRIVILEGE_REGISTRY
from nti.accessmanager.config import STANDARD_RESTRICTION_PROVIDER

from nti.accessmanager.config import read_config
from nti.accessmanager.config import registry_from_config
from nti.accessmanager.config import get_privilege_registry
from nti.accessmanager.config import privilege_definitions
from nti.accessmanager.config import get_restriction_provider
from nti.accessmanager.config import registry_from_environment
from nti.accessmanager.config import restriction_provider_from_config

from nti.accessmanager.interfaces import JCR_ALL

from nti.accessmanager.interfaces import IPrivilegeRegistry
from nti.accessmanager.interfaces import IRestrictionProvider

from nti.accessmanager.interfaces import DanglingPrivilegeError

from nti.accessmanager.tests import ConfiguringTestBase

APP_CONFIG = """
[registry]
root = app:all

[privileges]
app:read =
app:write =
app:admin =
app:edit = app:read app:write
app:all = app:edit app:admin

[restrictions]
app:glob = String
app:names = Name[]
app:prefix =
"""


class TestConfigFile(unittest.TestCase):

    def test_privileges(self):
        parser = read_config(StringIO(APP_CONFIG))
        definitions = privilege_definitions(parser)
        assert_that(list(definitions),
                    contains_exactly('app:read', 'app:write', 'app:admin', 'app:edit', 'app:all'))
        assert_that(definitions['app:edit'], is_(('app:read', 'app:write')))
        assert_that(definitions['app:read'], is_(()))

        registry = registry_from_config(parser)
        assert_that(registry, verifiably_provides(IPrivilegeRegistry))
        assert_that(registry, has_length(5))
        assert_that(registry.root.id, is_('app:all'))
        assert_that(registry.isAggregate('app:edit'), is_(True))
        assert_that(registry.depth_map[registry['app:write']], is_(2))

    def test_restrictions(self):
        provider = restriction_provider_from_config(StringIO(APP_CONFIG))
        assert_that(provider, verifiably_provides(IRestrictionProvider))
        by_name = {d.name: d for d in provider.getSupportedRestrictions('/')}
        assert_that(by_name['app:glob'].multiValue, is_(False))
        assert_that(by_name['app:names'].multiValue, is_(True))
        assert_that(by_name['app:names'].requiredType, is_('Name'))
        assert_that(by_name['app:prefix'].requiredType, is_('String'))

    def test_missing_root(self):
        source = StringIO("[privileges]\napp:read =\napp:all = app:read\n")
        # the root defaults to jcr:all
        assert_that(calling(registry_from_config).with_args(source),
                    raises(DanglingPrivilegeError))

    def test_standard_without_utilities(self):
        assert_that(get_privilege_registry(),
                    is_(same_instance(STANDARD_PRIVILEGE_REGISTRY)))
        assert_that(get_restriction_provider(),
                    is_(same_instance(STANDARD_RESTRICTION_PROVIDER)))

    def test_environment(self):
        assert_that(registry_from_environment({}).root.id, is_(JCR_ALL))

        tmpdir = tempfile.mkdtemp()
        try:
            path = os.path.join(tmpdir, 'privileges.ini')
            with open(path, 'w') as f:
                f.write(APP_CONFIG)
            registry = registry_from_environment({PRIVILEGES_ENV_VAR: path})
            assert_that(registry.root.id, is_('app:all'))
        finally:
            shutil.rmtree(tmpdir)


class TestRegisteredUtilities(ConfiguringTestBase):

    def test_registered(self):
        registry = component.getUtility(IPrivilegeRegistry)
        assert_that(registry.root.id, is_(JCR_ALL))
        assert_that(get_privilege_registry(), is_(same_instance(registry)))

        provider = component.getUtility(IRestrictionProvider)
        assert_that(get_restriction_provider(), is_(same_instance(provider)))
        assert_that(provider.getSupportedRestrictions('/content'), has_length(7))
