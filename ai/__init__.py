"""
ai/ - Natural Language Fallback
================================
Gemini-backed parsing of free-text subscription descriptions.
"""
