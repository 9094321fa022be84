"""
models/ - Domain Objects
=========================
Plain dataclasses for subscriptions and per-user settings.
"""
