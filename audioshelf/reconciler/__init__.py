"""Reconciliation of scan results against the catalog."""

from .reconciler import ReconcileStats, Reconciler

__all__ = ["Reconciler", "ReconcileStats"]
