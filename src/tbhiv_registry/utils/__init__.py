"""Utilities module.

Shared helpers and the exception hierarchy used across the registry.
"""
