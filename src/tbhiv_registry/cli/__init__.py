"""CLI module.

This module provides the tbhiv-registry command-line interface.
"""
