"""
Pasada de reconciliación controlada por trigger.
"""
from .reconciler import Action, Reconciler, ReconcileResult, validate_desired

__all__ = ["Action", "Reconciler", "ReconcileResult", "validate_desired"]
