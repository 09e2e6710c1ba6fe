from .controller import EmploymentWizard, StepIncompleteError, WizardStateError
from .drafts import DraftCache, DraftCacheError
from .state import StepState, WizardSnapshot, WizardStep

__all__ = [
    "DraftCache",
    "DraftCacheError",
    "EmploymentWizard",
    "StepIncompleteError",
    "StepState",
    "WizardSnapshot",
    "WizardStateError",
    "WizardStep",
]
