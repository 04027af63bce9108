"""
CardSense Test Suite

Tests are organized into:
- unit/: Unit tests for individual components
- integration/: Pipeline tests against an in-memory catalog
"""
