"""
Confirmation Domain

Resolves a gathering to one confirmed time and/or place: vote tally,
tie-break fallback, lifecycle transitions and the confirmed-result store.
"""

from .router import router

__all__ = ["router"]
