"""
security/ - Handler Guards
===========================
Whitelist and rate-limit decorators wrapped around every handler.
"""
