"""
Tests package - Test suite for the secret binding operator.

Contains:
- unit/: Unit tests for individual components
- unit/bindings/: Service account sync, secret linking and ownership markers
"""
