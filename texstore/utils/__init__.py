"""
Support Utilities
=================

Logging setup, the single-thread background worker used to serialize
registrations, and JSON persistence for store configuration.
"""
