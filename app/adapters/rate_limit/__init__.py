"""Rate limiting adapters.

The relay keeps a per-client fixed-window table in memory; the abstraction
lets the HTTP layer take any limiter injected through ``app.state``.
"""
