"""FastAPI endpoint for the carton cascade."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from carton_planner.calculator import run_calculation
from carton_planner.config import default_options
from carton_planner.fields import resolve_field_map
from carton_planner.models import CalculationOptions, RunSummary
from carton_planner.notify import LogNotifier
from carton_planner.store import InMemoryRecordStore, dump_records

logger = logging.getLogger(__name__)


class RecordIn(BaseModel):
    """One product row: id plus column name -> cell value."""
    id: str = Field(min_length=1, description="Record identifier")
    fields: dict[str, Any] = Field(default_factory=dict, description="Cell values keyed by column name")


class CalculateRequest(BaseModel):
    records: list[RecordIn] = Field(description="Records in view order")
    selected_ids: list[str] = Field(default_factory=list, description="Explicit selection, may be empty")
    options: CalculationOptions | None = Field(default=None, description="Defaults come from the environment")


class CalculateResponse(BaseModel):
    summary: RunSummary
    logs: list[str]
    warnings: list[str]
    missing_fields: list[str]
    records: list[dict[str, Any]]


app = FastAPI(
    title="Carton Planner API",
    description="Inner and master carton sizing",
)


@app.post("/calculate", response_model=CalculateResponse)
async def calculate(request: CalculateRequest) -> CalculateResponse:
    """
    Run the cascade over the posted records and return them updated.

    Input (request body):
        {
            "records": [
                {"id": "rec1", "fields": {"Item Width (inch)": 2, "Master Qty": 12, ...}}
            ],
            "selected_ids": [],
            "options": {"inner_buffer": 0.5, "inner_material": "Box"}
        }
    """
    ids = [r.id for r in request.records]
    if len(set(ids)) != len(ids):
        raise HTTPException(status_code=422, detail="Record ids must be unique")

    try:
        options = request.options or default_options()
        store = InMemoryRecordStore(
            {r.id: r.fields for r in request.records},
            [s for s in request.selected_ids if s],
        )
        field_map, missing = resolve_field_map(store.columns(), create_missing=True)
        notifier = LogNotifier()
        summary = run_calculation(store, field_map, options, notifier)

        logger.info(f"processed={summary.processed}, failed={summary.failed}, total={summary.total}")
        return CalculateResponse(
            summary=summary,
            logs=notifier.lines,
            warnings=notifier.warnings,
            missing_fields=missing,
            records=dump_records(store)["records"],
        )
    except Exception as e:
        logger.error(f"ERROR in /calculate endpoint: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/health")
async def health() -> dict[str, Any]:
    """Health check endpoint."""
    return {"ok": True}
