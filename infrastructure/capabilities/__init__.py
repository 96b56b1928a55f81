"""Capability modules: each provisions one slice of the stack (database, compute, frontend, DNS).

Importing this package registers every capability in CAPABILITIES.
"""

from infrastructure.capabilities import compute, database, dns, frontend  # noqa: F401
from infrastructure.capabilities.foundation import provision_foundation
from infrastructure.capabilities.registry import CAPABILITIES, run_capabilities

__all__ = ["CAPABILITIES", "provision_foundation", "run_capabilities"]
