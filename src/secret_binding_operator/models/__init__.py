"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- Secret link specifications (referenced and managed service accounts)
- Object identities
"""
