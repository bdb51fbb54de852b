"""Bulk page ingestion: intake → reconcile → fetch → generate."""

from schemaboard.pipeline.generation import HttpSchemaGenerator, SchemaGenerator
from schemaboard.pipeline.intake import create_batch, parse_csv, parse_pasted_grid
from schemaboard.pipeline.orchestrator import (
    ItemOutcome,
    RunSummary,
    process_item,
    run_pipeline,
    summarize_items,
)
from schemaboard.pipeline.reconciler import Reconciliation, reconcile

__all__ = [
    "HttpSchemaGenerator",
    "SchemaGenerator",
    "create_batch",
    "parse_csv",
    "parse_pasted_grid",
    "ItemOutcome",
    "RunSummary",
    "process_item",
    "run_pipeline",
    "summarize_items",
    "Reconciliation",
    "reconcile",
]
