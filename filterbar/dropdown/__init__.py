"""
Value dropdown for the filter query bar.

Provides:
- DropdownMachine: pure state machine (events in, model and effects out)
- DropdownController: async driver wiring the machine to the candidate cache
"""

from .controller import DropdownController
from .machine import DropdownMachine, DropdownModel

__all__ = [
    "DropdownController",
    "DropdownMachine",
    "DropdownModel",
]
