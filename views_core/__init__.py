"""
Views Core

Read-through query cache with request deduplication and a process-wide
diagnostics agent for the Views media-production portal.
"""

__version__ = "1.0.0"
