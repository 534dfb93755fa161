"""Explicit workflow domain concepts.

This package introduces first-class types for:
- Trigger events and the trigger filter
- Stages (change detection, doc linting)
- The gate between the two stages
- A persisted pipeline state machine
"""

__all__: list[str] = []
