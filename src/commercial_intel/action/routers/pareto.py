"""Pareto routes: client and product concentration plus export."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from commercial_intel.action.dependencies import (
    SALES_FIELDS,
    apply_scope,
    filter_options,
    filters_for,
    get_override_table,
    get_sales,
    require_page,
    scope_payload,
)
from commercial_intel.analytics.access_policy import Identity, OverrideTable, effective_filters
from commercial_intel.analytics.export import CLIENT_COLUMNS, PRODUCT_COLUMNS, export_entities
from commercial_intel.analytics.filters import FilterCriteria
from commercial_intel.analytics.pareto import (
    analyze_clients,
    analyze_products,
    chart_projection,
    concentration_summary,
)
from commercial_intel.analytics.records import TransactionRecord
from config.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pareto"])

_sales_filters = filters_for(SALES_FIELDS)

EXPORT_MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "xls": "application/vnd.ms-excel",
}


def _threshold(value: float | None) -> float:
    return settings.pareto_threshold if value is None else value


@router.get("/pareto/clients")
async def pareto_clients(
    threshold: float | None = Query(default=None, gt=0, le=100),
    identity: Identity = Depends(require_page("pareto_clients")),
    criteria: FilterCriteria = Depends(_sales_filters),
    table: OverrideTable = Depends(get_override_table),
    sales: list[TransactionRecord] = Depends(get_sales),
) -> dict:
    """Client-axis Pareto over the caller's visible sales."""
    policy, visible = apply_scope(identity, table, sales, SALES_FIELDS, criteria)
    result = analyze_clients(visible, effective_filters(policy, criteria), _threshold(threshold))
    return {
        "metrics": result.metrics(),
        "summary": concentration_summary(result, "clients"),
        "entities": result.entities,
        "chart": chart_projection(result.entities, settings.chart_limit, settings.chart_label_length),
        "options": filter_options(sales, SALES_FIELDS, policy),
        **scope_payload(policy, criteria),
    }


@router.get("/pareto/products")
async def pareto_products(
    threshold: float | None = Query(default=None, gt=0, le=100),
    identity: Identity = Depends(require_page("pareto_products")),
    criteria: FilterCriteria = Depends(_sales_filters),
    table: OverrideTable = Depends(get_override_table),
    sales: list[TransactionRecord] = Depends(get_sales),
) -> dict:
    """Category-axis Pareto with the sticky crossing boundary."""
    policy, visible = apply_scope(identity, table, sales, SALES_FIELDS, criteria)
    result = analyze_products(visible, _threshold(threshold))
    return {
        "metrics": result.metrics(),
        "summary": concentration_summary(result, "categories"),
        "entities": result.entities,
        "chart": chart_projection(result.entities, settings.chart_limit, settings.chart_label_length),
        "options": filter_options(sales, SALES_FIELDS, policy),
        **scope_payload(policy, criteria),
    }


def _check_format(fmt: str) -> None:
    if fmt not in EXPORT_MEDIA_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {fmt}")


def _download(body: str, fmt: str, name: str) -> Response:
    filename = f"{name}-{date.today().isoformat()}.{fmt}"
    return Response(
        content=body,
        media_type=EXPORT_MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/pareto/clients/export")
async def export_pareto_clients(
    format: str = Query(default="csv"),
    threshold: float | None = Query(default=None, gt=0, le=100),
    identity: Identity = Depends(require_page("pareto_clients")),
    criteria: FilterCriteria = Depends(_sales_filters),
    table: OverrideTable = Depends(get_override_table),
    sales: list[TransactionRecord] = Depends(get_sales),
) -> Response:
    """Download the client table as CSV or as an Excel-readable sheet."""
    _check_format(format)
    policy, visible = apply_scope(identity, table, sales, SALES_FIELDS, criteria)
    result = analyze_clients(visible, effective_filters(policy, criteria), _threshold(threshold))
    logger.info("Exporting %d clients as %s for %s", len(result.entities), format, identity.username)
    return _download(export_entities(result.entities, format, CLIENT_COLUMNS), format, "pareto-clients")


@router.get("/pareto/products/export")
async def export_pareto_products(
    format: str = Query(default="csv"),
    threshold: float | None = Query(default=None, gt=0, le=100),
    identity: Identity = Depends(require_page("pareto_products")),
    criteria: FilterCriteria = Depends(_sales_filters),
    table: OverrideTable = Depends(get_override_table),
    sales: list[TransactionRecord] = Depends(get_sales),
) -> Response:
    _check_format(format)
    _, visible = apply_scope(identity, table, sales, SALES_FIELDS, criteria)
    result = analyze_products(visible, _threshold(threshold))
    logger.info("Exporting %d categories as %s for %s", len(result.entities), format, identity.username)
    return _download(export_entities(result.entities, format, PRODUCT_COLUMNS), format, "pareto-products")
