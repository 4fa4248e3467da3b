"""
utils/ - Shared Helpers
=======================
Logging setup, exceptions, and text formatting used across all layers.
"""
