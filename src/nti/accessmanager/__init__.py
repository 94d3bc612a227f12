#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Privilege aggregation and restriction consolidation for access control
entries.

A request to allow or deny a privilege, which may be an aggregate, is
expanded onto the leaf privileges it implies (see
:mod:`nti.accessmanager.aggregation`). Once all the changes are made,
the leaf decisions are folded back into the most specific aggregates
that represent them exactly.

.. $Id$
"""

logger = __import__('logging').getLogger(__name__)
