"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the charms data model and predicates.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. roundtrip.py - Canonical text/binary encodings are exact inverses
2. conservation.py - Presence, amount and singleton-state conservation

These tests use hypothesis for property-based testing.
"""
