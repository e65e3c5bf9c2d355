"""Frontends - user interfaces for the gateway.

Submodules:
    cli/    Command-line interface
"""
