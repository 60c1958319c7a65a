"""Catalog synchronization engine."""

from jobmirror.sync.changes import SIGNIFICANT_FIELDS, changed_fields
from jobmirror.sync.reconciler import Reconciler

__all__ = ["SIGNIFICANT_FIELDS", "Reconciler", "changed_fields"]
