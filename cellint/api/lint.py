"""
API endpoints for linting cells and notebooks.

Errors are returned as JSON records:
    {"line": 3, "column": 5, "msg": "...", "severity": "error", "rule": "...", "cellIndex": 1, "cellLine": 2}
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from ..config import config
from ..models.linting import ErrorStats, LintContext, LintSeverity, NotebookCell
from ..rules import RULES_BY_ID
from ..services import result_aggregator
from ..services.engine_factory import create_combined_linter, create_engine
from ..services.ruff_engine import RuffEngine, RuffEngineError

logger = logging.getLogger(__name__)

router = APIRouter()


class LintCellRequest(BaseModel):
    """Request model for linting a single cell."""
    model_config = ConfigDict(populate_by_name=True)

    code: str
    line_offset: int = Field(default=0, ge=0, alias="lineOffset")
    cell_index: int = Field(default=0, alias="cellIndex")
    # names defined by earlier cells
    defined_names: List[str] = Field(default_factory=list, alias="definedNames")
    min_severity: Optional[LintSeverity] = None


class LintNotebookRequest(BaseModel):
    """Request model for linting a whole notebook."""
    cells: List[NotebookCell]
    combined: bool = False
    min_severity: Optional[LintSeverity] = None


class LintResponse(BaseModel):
    """Response model carrying lint records and their summary."""
    errors: List[Dict[str, Any]]
    stats: ErrorStats
    summary: str
    engine: str
    # names the cell defines (single-cell requests on the heuristic engine only)
    defined_names: Optional[List[str]] = None


class RuleInfo(BaseModel):
    name: str
    description: str
    enabled: bool


def _build_response(errors, min_severity: Optional[LintSeverity], engine: str, defined_names=None) -> LintResponse:
    threshold = min_severity or config.get_min_severity()
    kept = result_aggregator.filter_by_severity(errors, threshold)
    return LintResponse(
        errors=[error.to_record() for error in kept],
        stats=result_aggregator.get_stats(kept),
        summary=result_aggregator.summarize(kept),
        engine=engine,
        defined_names=sorted(defined_names) if defined_names is not None else None,
    )


def _engine_unavailable(e: RuffEngineError) -> HTTPException:
    logger.error(f"Lint engine unavailable: {e}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Lint engine unavailable: {str(e)}"
    )


@router.post("/cell", response_model=LintResponse)
async def lint_cell(request: LintCellRequest):
    """
    Lint one cell.

    Args:
        request: cell code, its line offset and the names defined by earlier cells

    Returns:
        LintResponse with the cell's errors
    """
    try:
        engine = create_engine(config)

        if isinstance(engine, RuffEngine):
            engine.add_to_context(request.defined_names)
            errors = await engine.lint_cell(request.code, request.line_offset, request.cell_index)
            return _build_response(errors, request.min_severity, "ruff")

        result = engine.lint_cell(
            request.code,
            request.line_offset,
            request.cell_index,
            LintContext(defined_names=set(request.defined_names)),
        )
        return _build_response(result.errors, request.min_severity, "heuristic", result.new_context)

    except RuffEngineError as e:
        raise _engine_unavailable(e)
    except Exception as e:
        logger.error(f"Error linting cell {request.cell_index}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to lint cell: {str(e)}"
        )


@router.post("/notebook", response_model=LintResponse)
async def lint_notebook(request: LintNotebookRequest):
    """
    Lint all cells of a notebook in order.

    With ``combined`` the notebook is analysed as one file (heuristic engine only).
    """
    try:
        if request.combined:
            errors = create_combined_linter(config).lint_notebook(request.cells)
            return _build_response(errors, request.min_severity, "combined")

        engine = create_engine(config)
        if isinstance(engine, RuffEngine):
            errors = await engine.lint_notebook(request.cells)
            return _build_response(errors, request.min_severity, "ruff")

        errors = engine.lint_notebook(request.cells)
        return _build_response(errors, request.min_severity, "heuristic")

    except RuffEngineError as e:
        raise _engine_unavailable(e)
    except Exception as e:
        logger.error(f"Error linting notebook: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to lint notebook: {str(e)}"
        )


@router.get("/rules", response_model=List[RuleInfo])
async def list_rules():
    """List the built-in rules and whether configuration enables them."""
    return [
        RuleInfo(
            name=rule_id,
            description=rule_class.description,
            enabled=config.is_rule_enabled(rule_id),
        )
        for rule_id, rule_class in RULES_BY_ID.items()
    ]
