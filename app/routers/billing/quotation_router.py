from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.enums.quotation_status import QuotationStatus
from app.utils.response import success_response, pdf_response, APIResponse
from app.utils.pdf_generators.quotation_pdf import RenderedDocument

from app.schemas.billing.quotation_schemas import (
    CatalogOut,
    QuotationActor,
    QuotationAnalyticsOut,
    QuotationBulkResult,
    QuotationBulkStatusUpdate,
    QuotationCompareIn,
    QuotationComparison,
    QuotationCreate,
    QuotationDocument,
    QuotationIds,
    QuotationListData,
    QuotationOut,
    QuotationStatsOut,
    QuotationStatusUpdate,
    QuotationUpdate,
    TotalsPreviewIn,
    WindowSpecification,
    WindowTypeChange,
)
from app.services.billing.pricing_service import QuotationTotals, apply_window_type_defaults

from app.services.billing.quotation_service import (
    bulk_delete,
    bulk_update_status,
    compare_quotations,
    create_quotation,
    delete_quotation,
    duplicate_quotation,
    export_quotation_pdf,
    get_catalog,
    get_quotation,
    get_quotation_by_number,
    list_quotations,
    list_revisions,
    preview_totals,
    quotation_analytics,
    quotation_stats_summary,
    render_document,
    submit_quotation,
    update_quotation,
    update_quotation_status,
)

router = APIRouter(
    prefix="/quotations",
    tags=["Quotations"],
)


def _pdf_response(rendered: RenderedDocument):
    return pdf_response(rendered.content, rendered.file_name, rendered.page_count)


# =====================================================
# CATALOG / PREVIEWS (no persistence)
# =====================================================

@router.get(
    "/catalog",
    response_model=APIResponse[CatalogOut],
)
async def get_catalog_api():
    return success_response(
        "Catalog retrieved successfully",
        get_catalog(),
    )


@router.post(
    "/price-preview",
    response_model=APIResponse[WindowSpecification],
)
async def price_preview_api(spec: WindowSpecification):
    return success_response(
        "Window priced successfully",
        spec,
    )


@router.post(
    "/window-type",
    response_model=APIResponse[WindowSpecification],
)
async def change_window_type_api(payload: WindowTypeChange):
    return success_response(
        "Window type applied successfully",
        apply_window_type_defaults(payload.window, payload.type),
    )


@router.post(
    "/totals-preview",
    response_model=APIResponse[QuotationTotals],
)
async def totals_preview_api(payload: TotalsPreviewIn):
    return success_response(
        "Totals calculated successfully",
        preview_totals(payload),
    )


@router.post("/pdf")
async def render_pdf_api(document: QuotationDocument):
    return _pdf_response(render_document(document))


# =====================================================
# CRUD
# =====================================================

@router.post(
    "",
    response_model=APIResponse[QuotationOut],
)
async def create_quotation_api(
    payload: QuotationCreate,
    db: AsyncSession = Depends(get_db),
):
    quotation = await create_quotation(db, payload)
    return success_response(
        "Quotation created successfully",
        quotation,
    )


@router.get(
    "",
    response_model=APIResponse[QuotationListData],
)
async def list_quotations_api(
    db: AsyncSession = Depends(get_db),
    search: str | None = Query(None, description="Match quotation number, client or project"),
    status: QuotationStatus | None = Query(None, description="Filter by status (e.g., draft, submitted)"),
    client_name: str | None = Query(None),
    window_type: str | None = Query(None),
    price_from: float | None = Query(None, ge=0),
    price_to: float | None = Query(None, ge=0),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    order: str = Query("desc"),
):
    data = await list_quotations(
        db=db,
        search=search,
        status=status,
        client_name=client_name,
        window_type=window_type,
        price_from=price_from,
        price_to=price_to,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )
    return success_response(
        "Quotations retrieved successfully",
        data,
    )


@router.get(
    "/stats/summary",
    response_model=APIResponse[QuotationStatsOut],
)
async def quotation_stats_api(db: AsyncSession = Depends(get_db)):
    return success_response(
        "Quotation statistics retrieved successfully",
        await quotation_stats_summary(db),
    )


@router.get(
    "/analytics",
    response_model=APIResponse[QuotationAnalyticsOut],
)
async def quotation_analytics_api(
    db: AsyncSession = Depends(get_db),
    date_from: date | None = Query(None, description="Created on or after"),
    date_to: date | None = Query(None, description="Created on or before"),
):
    return success_response(
        "Quotation analytics retrieved successfully",
        await quotation_analytics(db, date_from=date_from, date_to=date_to),
    )


# =====================================================
# BULK / COMPARE
# =====================================================

@router.post(
    "/bulk/status",
    response_model=APIResponse[QuotationBulkResult],
)
async def bulk_status_api(
    payload: QuotationBulkStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    result = await bulk_update_status(db, payload.quotation_ids, payload.status, payload.user_id)
    return success_response(
        f"Successfully updated {result.affected} quotes to {payload.status.value}",
        result,
    )


@router.post(
    "/bulk/delete",
    response_model=APIResponse[QuotationBulkResult],
)
async def bulk_delete_api(
    payload: QuotationIds,
    db: AsyncSession = Depends(get_db),
):
    result = await bulk_delete(db, payload.quotation_ids)
    return success_response(
        f"Successfully deleted {result.affected} quotes",
        result,
    )


@router.post(
    "/compare",
    response_model=APIResponse[QuotationComparison],
)
async def compare_quotations_api(
    payload: QuotationCompareIn,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "Quotations compared successfully",
        await compare_quotations(db, payload.quotation_ids),
    )


@router.get(
    "/number/{quotation_number}",
    response_model=APIResponse[QuotationOut],
)
async def get_quotation_by_number_api(
    quotation_number: str,
    db: AsyncSession = Depends(get_db),
):
    quotation = await get_quotation_by_number(db, quotation_number)
    return success_response(
        "Quotation retrieved successfully",
        quotation,
    )


@router.get(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def get_quotation_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
):
    quotation = await get_quotation(db=db, quotation_id=quotation_id)
    return success_response(
        "Quotation retrieved successfully",
        quotation,
    )


@router.put(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def update_quotation_api(
    quotation_id: int,
    payload: QuotationUpdate,
    db: AsyncSession = Depends(get_db),
):
    quotation = await update_quotation(
        db=db,
        quotation_id=quotation_id,
        payload=payload,
    )
    return success_response(
        "Quotation updated successfully",
        quotation,
    )


@router.patch(
    "/{quotation_id}/status",
    response_model=APIResponse[QuotationOut],
)
async def update_quotation_status_api(
    quotation_id: int,
    payload: QuotationStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    quotation = await update_quotation_status(
        db=db,
        quotation_id=quotation_id,
        status=payload.status,
        user_id=payload.user_id,
    )
    return success_response(
        "Quotation status updated successfully",
        quotation,
    )


@router.patch(
    "/{quotation_id}/submit",
    response_model=APIResponse[QuotationOut],
)
async def submit_quotation_api(
    quotation_id: int,
    payload: QuotationActor | None = None,
    db: AsyncSession = Depends(get_db),
):
    actor = payload or QuotationActor()
    quotation = await submit_quotation(db, quotation_id, actor.user_id)
    return success_response(
        "Quotation submitted successfully",
        quotation,
    )


@router.post(
    "/{quotation_id}/duplicate",
    response_model=APIResponse[QuotationOut],
)
async def duplicate_quotation_api(
    quotation_id: int,
    payload: QuotationActor | None = None,
    db: AsyncSession = Depends(get_db),
):
    actor = payload or QuotationActor()
    quotation = await duplicate_quotation(db, quotation_id, actor.user_id)
    return success_response(
        "Quotation duplicated successfully",
        quotation,
    )


@router.delete(
    "/{quotation_id}",
    response_model=APIResponse[dict],
)
async def delete_quotation_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
):
    deleted = await delete_quotation(db, quotation_id)
    return success_response(
        "Quotation deleted successfully",
        deleted,
    )


@router.get("/{quotation_id}/pdf")
async def export_quotation_pdf_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
):
    rendered = await export_quotation_pdf(db, quotation_id)
    return _pdf_response(rendered)


@router.get(
    "/{quotation_id}/revisions",
    response_model=APIResponse[List[QuotationOut]],
)
async def list_revisions_api(
    quotation_id: int,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "Quotation revisions retrieved successfully",
        await list_revisions(db, quotation_id),
    )
