#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""


.. $Id$
"""

from nti.testing.base import ConfiguringTestBase as _ConfiguringTestBase

from nti.accessmanager.privileges import standard_privilege_registry

logger = __import__('logging').getLogger(__name__)


class ConfiguringTestBase(_ConfiguringTestBase):
    set_up_packages = ('nti.accessmanager',)


class PrivilegesMixin(object):
    """
    Gives a test the standard registry as ``self.registry``, and
    ``self.p(name)`` to look up privileges in it.
    """

    registry = standard_privilege_registry()

    def p(self, name):
        return self.registry.privilegeFromName(name)

    def ps(self, *names):
        return [self.p(name) for name in names]
