"""
Session package: the persisted recommendation chain and its state machine.

This package provides:
- Chain store: persisted chain of activities and finished ids
- Context builder: request context and exclusion list for a finished activity
- Orchestrator: boot, finish, reset
- Presentation: interface the orchestrator renders through, plus a terminal version
"""

from . import chain_store
from . import context_builder
from . import models
from . import orchestrator
from . import presentation

__all__ = [
    'chain_store',
    'context_builder',
    'models',
    'orchestrator',
    'presentation'
]
