"""Marketplace listing automation."""

from inventory_relay.posting.form_filler import FORM_FIELDS, FillReport, FormField, FormFiller
from inventory_relay.posting.orchestrator import (
    PostingOrchestrator,
    PostingRunResult,
    PostingTask,
    TaskState,
)

__all__ = [
    "FORM_FIELDS",
    "FillReport",
    "FormField",
    "FormFiller",
    "PostingOrchestrator",
    "PostingRunResult",
    "PostingTask",
    "TaskState",
]
