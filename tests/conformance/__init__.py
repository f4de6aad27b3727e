"""
Conformance Test Suite

Property-based checks of behavior every caller relies on:
1. determinism.py - Identical inputs give identical results, nothing is cached
2. monotonicity.py - Auction prices and naked requirements never move backwards
3. rounding.py - Fixed-point projection and excess rounding direction

These tests use hypothesis for property-based testing.
"""
