#!/usr/bin/env python
# -*- coding: utf-8 -*-

# pylint: disable=protected-access,too-many-public-methods

from hamcrest import is_
from hamcrest import is_not
from hamcrest import calling
from hamcrest import raises
from hamcrest import contains_exactly
from hamcrest import has_length
from hamcrest import assert_that
from hamcrest import has_properties
from hamcrest import contains_string

from nti.testing.matchers import verifiably_provides

import unittest

from nti.accessmanager.acl import get_decisions
from nti.accessmanager.acl import place_entries
from nti.accessmanager.acl import load_decisions
from nti.accessmanager.acl import delete_entries
from nti.accessmanager.acl import get_all_decisions
from nti.accessmanager.acl import AccessControlEntry
from nti.accessmanager.acl import entries_from_decisions

from nti.accessmanager.aggregation import consolidate_aggregates

from nti.accessmanager.interfaces import JCR_ALL
from nti.accessmanager.interfaces import JCR_READ
from nti.accessmanager.interfaces import JCR_WRITE
from nti.accessmanager.interfaces import REP_GLOB

from nti.accessmanager.interfaces import IAccessControlEntry

from nti.accessmanager.interfaces import InvalidOrderError
from nti.accessmanager.interfaces import UnknownPrivilegeError

from nti.accessmanager.restrictions import LocalRestriction
from nti.accessmanager.restrictions import RestrictionDefinition

from nti.accessmanager.tests import PrivilegesMixin

GLOB = RestrictionDefinition(REP_GLOB, 'String', False)


class TestAccessControlEntry(PrivilegesMixin, unittest.TestCase):

    def test_provides(self):
        ace = AccessControlEntry.allowing('sjohnson', JCR_READ, registry=self.registry)
        assert_that(ace, verifiably_provides(IAccessControlEntry))
        assert_that(ace, has_properties('principal', 'sjohnson',
                                        'allow', True,
                                        'privileges', (self.p(JCR_READ),),
                                        'restrictions', frozenset()))

    def test_names_use_registered_registry(self):
        # without a registered utility the standard privileges are used
        ace = AccessControlEntry.denying('sjohnson', [JCR_READ, JCR_WRITE])
        assert_that(ace.privileges, is_(tuple(self.ps(JCR_READ, JCR_WRITE))))
        assert_that(ace.allow, is_(False))
        assert_that(calling(AccessControlEntry.allowing).with_args('sjohnson', 'jcr:nope'),
                    raises(UnknownPrivilegeError))

    def test_equality(self):
        restrictions = (LocalRestriction(GLOB, '/a'),)
        ace = AccessControlEntry.allowing('sjohnson', self.ps(JCR_READ), restrictions)
        same = AccessControlEntry('sjohnson', True, [JCR_READ], restrictions)
        assert_that(ace, is_(same))
        assert_that(hash(ace), is_(hash(same)))
        assert_that(ace, is_not(AccessControlEntry.allowing('sjohnson', self.ps(JCR_READ))))
        assert_that(ace, is_not(AccessControlEntry.denying('sjohnson', self.ps(JCR_READ),
                                                           restrictions)))
        assert_that(repr(ace), is_("<AccessControlEntry: allow,sjohnson,['jcr:read'] "
                                   "[LocalRestriction(name=rep:glob, values='/a')]>"))


class TestDecisionsAndEntries(PrivilegesMixin, unittest.TestCase):

    def test_load_filters_by_principal(self):
        entries = [AccessControlEntry.allowing('sjohnson', self.ps(JCR_READ)),
                   AccessControlEntry.allowing('jmadden', self.ps(JCR_ALL)),
                   AccessControlEntry.denying('sjohnson', self.ps('rep:readNodes'))]
        decisions = load_decisions(entries, 'sjohnson')
        assert_that(decisions, has_length(2))
        assert_that(decisions[self.p('rep:readNodes')].deny, is_(True))
        assert_that(decisions[self.p('rep:readNodes')].allow, is_(False))

        assert_that(load_decisions(entries), has_length(21))

    def test_render_orders_entries(self):
        glob = LocalRestriction(GLOB, '/a')
        entries = [AccessControlEntry.allowing('sjohnson', self.ps(JCR_WRITE)),
                   AccessControlEntry.allowing('sjohnson', self.ps('jcr:lockManagement')),
                   AccessControlEntry.allowing('sjohnson', self.ps(JCR_READ), (glob,)),
                   AccessControlEntry.denying('sjohnson', self.ps('jcr:removeNode'))]
        decisions = load_decisions(entries)
        depth_map = self.registry.depth_map
        consolidate_aggregates(decisions, depth_map, self.registry)
        result = entries_from_decisions(decisions, depth_map, 'sjohnson')

        assert_that(result, has_length(3))
        deny, unrestricted, restricted = result
        assert_that(deny.allow, is_(False))
        assert_that([p.id for p in deny.privileges], contains_exactly('jcr:removeNode'))

        assert_that(unrestricted.allow, is_(True))
        assert_that([p.id for p in unrestricted.privileges],
                    contains_exactly('jcr:lockManagement', 'jcr:addChildNodes',
                             'jcr:modifyProperties', 'jcr:removeChildNodes'))

        assert_that(restricted.privileges, is_(tuple(self.ps(JCR_READ))))
        assert_that(restricted.restrictions, is_(frozenset((glob,))))

    def test_round_trip(self):
        entries = [AccessControlEntry.allowing('sjohnson', self.ps(JCR_ALL)),
                   AccessControlEntry.denying('sjohnson', self.ps(JCR_WRITE))]
        depth_map = self.registry.depth_map
        decisions = consolidate_aggregates(load_decisions(entries), depth_map, self.registry)
        rendered = entries_from_decisions(decisions, depth_map, 'sjohnson')
        again = consolidate_aggregates(load_decisions(rendered), depth_map, self.registry)
        assert_that(entries_from_decisions(again, depth_map, 'sjohnson'), is_(rendered))
        assert_that(rendered[0], is_(AccessControlEntry.denying('sjohnson', self.ps(JCR_WRITE))))


class TestEntryLists(PrivilegesMixin, unittest.TestCase):

    def setUp(self):
        super(TestEntryLists, self).setUp()
        self.a1 = AccessControlEntry.allowing('cutz', self.ps(JCR_READ))
        self.s1 = AccessControlEntry.allowing('sjohnson', self.ps(JCR_READ))
        self.s2 = AccessControlEntry.denying('sjohnson', self.ps('jcr:removeNode'))
        self.j1 = AccessControlEntry.allowing('jmadden', self.ps(JCR_ALL))
        self.acl = [self.a1, self.s1, self.s2, self.j1]
        self.new = [AccessControlEntry.allowing('sjohnson', self.ps(JCR_WRITE))]

    def place(self, order, principal='sjohnson'):
        return place_entries(self.acl, principal, self.new, order)

    def test_place_keeps_position(self):
        new, = self.new
        assert_that(self.place(None), is_([self.a1, new, self.j1]))
        assert_that(self.place(''), is_([self.a1, new, self.j1]))
        # a principal without entries goes last
        assert_that(self.place(None, 'cmadden'),
                    is_([self.a1, self.s1, self.s2, self.j1, new]))
        # the list given is not changed
        assert_that(self.acl, has_length(4))

    def test_place_named(self):
        new, = self.new
        assert_that(self.place('first'), is_([new, self.a1, self.j1]))
        assert_that(self.place('last'), is_([self.a1, self.j1, new]))
        assert_that(self.place('before cutz'), is_([new, self.a1, self.j1]))
        assert_that(self.place('after cutz'), is_([self.a1, new, self.j1]))
        assert_that(self.place('after jmadden'), is_([self.a1, self.j1, new]))
        assert_that(self.place('before jmadden'), is_([self.a1, new, self.j1]))

    def test_place_index(self):
        new, = self.new
        assert_that(self.place('0'), is_([new, self.a1, self.j1]))
        assert_that(self.place('1'), is_([self.a1, new, self.j1]))
        assert_that(self.place('2'), is_([self.a1, self.j1, new]))
        assert_that(self.place('-1'), is_([self.a1, self.j1, new]))

    def test_place_invalid(self):
        for order in ('before nobody', 'after nobody', 'sideways', '3'):
            assert_that(calling(self.place).with_args(order),
                        raises(InvalidOrderError))

    def test_delete(self):
        with self.assertLogs('nti.accessmanager.acl', level='WARNING') as logs:
            result = delete_entries(self.acl, ['sjohnson', 'nobody'])
        assert_that(result, is_([self.a1, self.j1]))
        assert_that(logs.output, has_length(1))
        assert_that(logs.output[0], contains_string('nobody'))

        assert_that(delete_entries(self.acl, ()), is_(self.acl))
        assert_that(delete_entries(self.acl, ['cutz', 'jmadden', 'sjohnson']), is_([]))

    def test_get_decisions(self):
        acl = [AccessControlEntry.allowing('sjohnson', self.ps(JCR_ALL)),
               AccessControlEntry.denying('sjohnson', self.ps(JCR_WRITE)),
               self.a1]
        decisions = get_decisions(acl, 'sjohnson', registry=self.registry)
        assert_that(decisions, has_length(15))
        assert_that(decisions[self.p(JCR_WRITE)].deny, is_(True))
        assert_that(decisions[self.p(JCR_READ)].allow, is_(True))

        assert_that(get_decisions(acl, 'nobody'), has_length(0))

        everyone = get_all_decisions(acl, registry=self.registry)
        assert_that(list(everyone), contains_exactly('sjohnson', 'cutz'))
        assert_that(everyone['sjohnson'], is_(decisions))
        assert_that([lp.name for lp in everyone['cutz'].values()],
                    contains_exactly(JCR_READ))
