# -*- coding: utf-8 -*-
"""contracts.tests: Event registry tests against real KV backends."""
