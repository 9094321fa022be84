"""
utils/ - Shared Helpers
========================
Logging setup, money and date formatting, and lenient text parsing.
"""
