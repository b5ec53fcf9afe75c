"""
Infrastructure Module

Query cache, diagnostics agent, health probes and session storage.
"""
