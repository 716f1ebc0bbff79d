"""Save coordination for the CMS editing session.

Exports
-------
- :class:`DirtyStateTracker` / :class:`SaveStatus`: session dirty state.
- :class:`CallbackRegistry`: editor-published save callbacks.
- :class:`SaveOrchestrator`, :class:`SavePlan`, :class:`SaveReport`: the
  save sequence and its wiring.
"""

from .orchestrator import DocumentGetter, PersistFn, SaveOrchestrator, SavePlan, SaveReport
from .registry import CallbackRegistry, Registration, RegistrationToken, SaveCallback
from .state import DirtyStateTracker, SaveStatus, StatusListener

__all__ = [
    "CallbackRegistry",
    "DirtyStateTracker",
    "DocumentGetter",
    "PersistFn",
    "Registration",
    "RegistrationToken",
    "SaveCallback",
    "SaveOrchestrator",
    "SavePlan",
    "SaveReport",
    "SaveStatus",
    "StatusListener",
]
