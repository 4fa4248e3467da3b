"""
security/ - Abuse Protection
============================
Per-user rate limiting applied to every bot command.
"""
