"""Sublyne host installer (Python-first, state-driven).

Core design goals:
- State-driven and resumable
- Idempotent steps
- Fail fast on any step, never roll back
- Centralized logging
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
