"""
Middleware package for session enforcement.

Provides:
- InactivityTracker: Redis-backed idle-session detection for auto-logout
"""
