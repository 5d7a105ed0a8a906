"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of a fund ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_nav_consistency.py - NAV tracks the vault and custody exactly
2. test_fund_atomicity.py - All-or-nothing operation semantics
3. test_rounding.py - Truncation always favours the pool
4. test_concurrency.py - One writer at a time per fund

These tests use hypothesis for property-based testing.
"""
