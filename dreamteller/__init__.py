"""
Dreamteller client core.
Session-bound API client, identity session and observable dream journal state.
"""

__version__ = "0.1.0"
