from datetime import date, datetime, timedelta, timezone
import logging
import math
import os
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, asc, desc, or_, delete

from app.core import config
from app.core.exceptions import AppException, QuotationNotFound
from app.constants.error_codes import ErrorCode
from app.constants import window_catalog
from app.models.billing.quotation_models import Quotation
from app.models.enums.quotation_status import QuotationStatus

from app.schemas.billing.quotation_schemas import (
    AnalyticsSummary,
    CatalogOut,
    ClientInfo,
    ClientRanking,
    CompanyDetails,
    ComparedValue,
    DailyTrend,
    QuotationAnalyticsOut,
    QuotationBulkResult,
    QuotationComparison,
    QuotationCreate,
    QuotationDocument,
    QuotationListData,
    QuotationListItem,
    QuotationOut,
    QuotationStatsOut,
    QuotationStatusSummary,
    QuotationUpdate,
    TotalsPreviewIn,
    WindowSpecification,
    WindowTypeShare,
)
from app.services.billing.pricing_service import (
    QuotationTotals,
    aggregate_totals,
    assign_spec_ids,
)
from app.services.billing.sequence_service import allocate_quotation_number
from app.utils.decimal_utils import to_decimal
from app.utils.pdf_generators.quotation_pdf import (
    EmptyQuotationError,
    RenderedDocument,
    render_quotation_pdf,
)

logger = logging.getLogger(__name__)


# =====================================================
# HELPERS
# =====================================================

def _load_specs(q: Quotation) -> List[WindowSpecification]:
    return [WindowSpecification.model_validate(s) for s in (q.window_specs or [])]


def _dump_specs(specs: List[WindowSpecification]) -> list:
    return [s.model_dump(mode="json", exclude={"computed_values"}) for s in specs]


def _transport_charge(transport_cost: float, loading_cost: float) -> float:
    return transport_cost + loading_cost


def _quotation_totals(q: Quotation, specs: List[WindowSpecification]) -> QuotationTotals:
    return aggregate_totals(
        specs,
        _transport_charge(q.transport_cost, q.loading_cost),
        q.gst_rate,
    )


def _apply_specs(q: Quotation, specs: List[WindowSpecification]) -> None:
    """Store specs and refresh every column derived from them."""
    specs = assign_spec_ids(specs)
    q.window_specs = _dump_specs(specs)
    q.primary_window_type = specs[0].type if specs else None
    _recalculate_totals(q, specs)


def _recalculate_totals(q: Quotation, specs: List[WindowSpecification]) -> None:
    totals = _quotation_totals(q, specs)
    q.subtotal_amount = to_decimal(totals.subtotal)
    q.tax_amount = to_decimal(totals.gst_amount)
    q.total_amount = to_decimal(totals.grand_total)


def _apply_client(q: Quotation, client: ClientInfo) -> None:
    q.client_info = client.model_dump(mode="json")
    q.client_name = client.name


async def _get_quotation(db: AsyncSession, quotation_id: int) -> Quotation:
    q = await db.get(Quotation, quotation_id)
    if not q:
        raise QuotationNotFound(quotation_id)
    return q


async def _get_quotation_for_update(db: AsyncSession, quotation_id: int) -> Quotation:
    q = await db.scalar(
        select(Quotation)
        .where(Quotation.id == quotation_id)
        .with_for_update()
    )
    if not q:
        raise QuotationNotFound(quotation_id)
    return q


def _apply_status(q: Quotation, status: QuotationStatus, user_id: str) -> None:
    now = datetime.now(timezone.utc)
    q.status = status
    if status == QuotationStatus.submitted and q.submitted_date is None:
        q.submitted_date = now
    q.last_modified_by = user_id
    q.updated_at = now


async def _ensure_number_free(db: AsyncSession, quotation_number: str) -> None:
    exists = await db.scalar(
        select(Quotation.id).where(Quotation.quotation_number == quotation_number)
    )
    if exists:
        raise AppException(
            409,
            "Quotation number already exists",
            ErrorCode.QUOTATION_NUMBER_EXISTS,
            {"quotation_number": quotation_number},
        )


def _map_quotation(q: Quotation) -> QuotationOut:
    specs = _load_specs(q)
    return QuotationOut(
        id=q.id,
        quotation_number=q.quotation_number,
        project=q.project,
        quotation_date=q.quotation_date,
        valid_until=q.valid_until,
        status=q.status,
        client_info=ClientInfo.model_validate(q.client_info),
        company_details=CompanyDetails.model_validate(q.company_details or {}),
        window_specs=specs,
        transport_cost=q.transport_cost,
        loading_cost=q.loading_cost,
        gst_rate=q.gst_rate,
        totals=_quotation_totals(q, specs),
        currency=q.currency,
        notes=q.notes,
        created_by=q.created_by,
        last_modified_by=q.last_modified_by,
        submitted_date=q.submitted_date,
        pdf_generated=q.pdf_generated,
        original_quotation_id=q.original_quotation_id,
        revision_of=q.revision_of,
        created_at=q.created_at,
        updated_at=q.updated_at,
    )


def _document_from_quotation(q: Quotation) -> QuotationDocument:
    return QuotationDocument(
        quotation_number=q.quotation_number,
        project=q.project,
        quotation_date=q.quotation_date,
        client_info=ClientInfo.model_validate(q.client_info),
        company_details=CompanyDetails.model_validate(q.company_details or {}),
        window_specs=_load_specs(q),
        transport_cost=_transport_charge(q.transport_cost, q.loading_cost),
        gst_rate=q.gst_rate,
    )


def _render(document: QuotationDocument) -> RenderedDocument:
    try:
        return render_quotation_pdf(document)
    except EmptyQuotationError as exc:
        raise AppException(
            400,
            "Quotation must contain at least one window specification",
            ErrorCode.QUOTATION_EMPTY,
        ) from exc


# =====================================================
# STATELESS OPERATIONS
# =====================================================

def get_catalog() -> CatalogOut:
    return CatalogOut(
        window_types=window_catalog.WINDOW_TYPES,
        glass_options=window_catalog.GLASS_OPTIONS,
        frame_materials=window_catalog.FRAME_MATERIALS,
        lock_options=window_catalog.LOCK_OPTIONS,
        color_options=window_catalog.COLOR_OPTIONS,
        grille_styles=list(window_catalog.GRILLE_STYLES),
    )


def preview_totals(payload: TotalsPreviewIn) -> QuotationTotals:
    transport = payload.transport_cost if payload.transport_cost is not None else config.TRANSPORT_COST
    loading = payload.loading_cost if payload.loading_cost is not None else config.LOADING_COST
    gst_rate = payload.gst_rate if payload.gst_rate is not None else config.GST_RATE
    return aggregate_totals(payload.window_specs, _transport_charge(transport, loading), gst_rate)


def render_document(document: QuotationDocument) -> RenderedDocument:
    return _render(document)


# =====================================================
# CRUD
# =====================================================

async def create_quotation(
    db: AsyncSession,
    payload: QuotationCreate,
) -> QuotationOut:
    requested_number = (payload.quotation_number or "").strip()
    if requested_number:
        await _ensure_number_free(db, requested_number)
        quotation_number = requested_number
    else:
        quotation_number = await allocate_quotation_number(db)

    quotation_date = payload.quotation_date or date.today()
    company = payload.company_details or CompanyDetails()

    q = Quotation(
        quotation_number=quotation_number,
        project=payload.project,
        quotation_date=quotation_date,
        valid_until=payload.valid_until
        or quotation_date + timedelta(days=config.QUOTATION_VALIDITY_DAYS),
        status=QuotationStatus.draft,
        company_details=company.model_dump(mode="json"),
        transport_cost=payload.transport_cost if payload.transport_cost is not None else config.TRANSPORT_COST,
        loading_cost=payload.loading_cost if payload.loading_cost is not None else config.LOADING_COST,
        gst_rate=payload.gst_rate if payload.gst_rate is not None else config.GST_RATE,
        currency="INR",
        notes=payload.notes,
        pdf_generated=False,
        created_by=payload.created_by,
        last_modified_by=payload.created_by,
    )
    _apply_client(q, payload.client_info)
    _apply_specs(q, payload.window_specs)

    db.add(q)
    await db.flush()
    await db.refresh(q)

    result = _map_quotation(q)
    await db.commit()

    logger.info(
        "Quotation %s created for %s (%d window(s))",
        q.quotation_number, q.client_name, len(result.window_specs),
    )
    return result


async def get_quotation(db: AsyncSession, quotation_id: int) -> QuotationOut:
    q = await _get_quotation(db, quotation_id)
    return _map_quotation(q)


async def get_quotation_by_number(db: AsyncSession, quotation_number: str) -> QuotationOut:
    q = await db.scalar(
        select(Quotation).where(Quotation.quotation_number == quotation_number)
    )
    if not q:
        raise QuotationNotFound(quotation_number)
    return _map_quotation(q)


async def list_quotations(
    db: AsyncSession,
    search: str | None = None,
    status: QuotationStatus | None = None,
    client_name: str | None = None,
    window_type: str | None = None,
    price_from: float | None = None,
    price_to: float | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    order: str = "desc",
) -> QuotationListData:
    filters = []

    if search:
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(
                Quotation.quotation_number.ilike(pattern),
                Quotation.client_name.ilike(pattern),
                Quotation.project.ilike(pattern),
            )
        )

    if status:
        filters.append(Quotation.status == status)

    if client_name:
        filters.append(Quotation.client_name.ilike(f"%{client_name.strip()}%"))

    if window_type:
        resolved = window_catalog.resolve_window_type(window_type) or window_type
        filters.append(Quotation.primary_window_type == resolved)

    if price_from is not None:
        filters.append(Quotation.total_amount >= to_decimal(price_from))

    if price_to is not None:
        filters.append(Quotation.total_amount <= to_decimal(price_to))

    if date_from:
        filters.append(Quotation.quotation_date >= date_from)

    if date_to:
        filters.append(Quotation.quotation_date <= date_to)

    total = await db.scalar(
        select(func.count()).select_from(
            select(Quotation.id).where(*filters).subquery()
        )
    ) or 0

    sort_map = {
        "created_at": Quotation.created_at,
        "quotation_date": Quotation.quotation_date,
        "quotation_number": Quotation.quotation_number,
        "client_name": Quotation.client_name,
        "total_amount": Quotation.total_amount,
        "status": Quotation.status,
    }
    sort_col = sort_map.get(sort_by, Quotation.created_at)

    result = await db.execute(
        select(Quotation)
        .where(*filters)
        .order_by(asc(sort_col) if order == "asc" else desc(sort_col), desc(Quotation.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    items = [
        QuotationListItem(
            id=q.id,
            quotation_number=q.quotation_number,
            client_name=q.client_name,
            project=q.project,
            status=q.status,
            items_count=len(q.window_specs or []),
            window_type=q.primary_window_type,
            total_amount=q.total_amount,
            quotation_date=q.quotation_date,
            valid_until=q.valid_until,
            created_at=q.created_at,
        )
        for q in result.scalars()
    ]

    total_pages = math.ceil(total / page_size) if total else 0

    return QuotationListData(
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
        items=items,
    )


async def update_quotation(
    db: AsyncSession,
    quotation_id: int,
    payload: QuotationUpdate,
) -> QuotationOut:
    q = await _get_quotation_for_update(db, quotation_id)

    changes: list[str] = []

    for field in (
        "project",
        "quotation_date",
        "valid_until",
        "notes",
        "transport_cost",
        "loading_cost",
        "gst_rate",
    ):
        value = getattr(payload, field)
        if value is not None and value != getattr(q, field):
            setattr(q, field, value)
            changes.append(field)

    if payload.client_info is not None:
        _apply_client(q, payload.client_info)
        changes.append("client_info")

    if payload.company_details is not None:
        q.company_details = payload.company_details.model_dump(mode="json")
        changes.append("company_details")

    if payload.window_specs is not None:
        _apply_specs(q, payload.window_specs)
        changes.append("window_specs")
    elif changes:
        _recalculate_totals(q, _load_specs(q))

    if not changes:
        return _map_quotation(q)

    q.last_modified_by = payload.user_id
    q.updated_at = datetime.now(timezone.utc)

    await db.flush()
    result = _map_quotation(q)
    await db.commit()

    logger.info("Quotation %s updated: %s", q.quotation_number, ", ".join(changes))
    return result


async def update_quotation_status(
    db: AsyncSession,
    quotation_id: int,
    status: QuotationStatus,
    user_id: str,
) -> QuotationOut:
    q = await _get_quotation_for_update(db, quotation_id)

    previous = q.status
    _apply_status(q, status, user_id)

    await db.flush()
    result = _map_quotation(q)
    await db.commit()

    logger.info("Quotation %s status %s -> %s", q.quotation_number, previous.value, status.value)
    return result


async def submit_quotation(
    db: AsyncSession,
    quotation_id: int,
    user_id: str,
) -> QuotationOut:
    q = await _get_quotation(db, quotation_id)
    if q.status == QuotationStatus.submitted:
        raise AppException(
            400,
            "Quote is already submitted",
            ErrorCode.QUOTATION_ALREADY_SUBMITTED,
        )
    return await update_quotation_status(db, quotation_id, QuotationStatus.submitted, user_id)


async def duplicate_quotation(
    db: AsyncSession,
    quotation_id: int,
    user_id: str,
) -> QuotationOut:
    source = await _get_quotation(db, quotation_id)
    today = date.today()

    copy = Quotation(
        quotation_number=await allocate_quotation_number(db),
        project=source.project,
        quotation_date=today,
        valid_until=today + timedelta(days=config.QUOTATION_VALIDITY_DAYS),
        status=QuotationStatus.draft,
        client_info=dict(source.client_info),
        client_name=source.client_name,
        company_details=dict(source.company_details or {}),
        window_specs=list(source.window_specs or []),
        primary_window_type=source.primary_window_type,
        transport_cost=source.transport_cost,
        loading_cost=source.loading_cost,
        gst_rate=source.gst_rate,
        subtotal_amount=source.subtotal_amount,
        tax_amount=source.tax_amount,
        total_amount=source.total_amount,
        currency=source.currency,
        notes=source.notes,
        pdf_generated=False,
        created_by=user_id,
        last_modified_by=user_id,
        original_quotation_id=source.original_quotation_id or source.id,
        revision_of=source.quotation_number,
    )

    db.add(copy)
    await db.flush()
    await db.refresh(copy)

    result = _map_quotation(copy)
    await db.commit()

    logger.info("Quotation %s duplicated as %s", source.quotation_number, copy.quotation_number)
    return result


async def delete_quotation(db: AsyncSession, quotation_id: int) -> dict:
    q = await _get_quotation(db, quotation_id)
    number = q.quotation_number

    await db.execute(delete(Quotation).where(Quotation.id == quotation_id))
    await db.commit()

    logger.info("Quotation %s deleted", number)
    return {"id": quotation_id, "quotation_number": number}


async def list_revisions(db: AsyncSession, quotation_id: int) -> List[QuotationOut]:
    """The whole revision family of a quotation: its root and every copy of it, oldest first."""
    q = await _get_quotation(db, quotation_id)
    root_id = q.original_quotation_id or q.id

    result = await db.execute(
        select(Quotation)
        .where(or_(Quotation.id == root_id, Quotation.original_quotation_id == root_id))
        .order_by(asc(Quotation.created_at), asc(Quotation.id))
    )
    return [_map_quotation(row) for row in result.scalars()]


# =====================================================
# BULK
# =====================================================

async def bulk_update_status(
    db: AsyncSession,
    quotation_ids: List[int],
    status: QuotationStatus,
    user_id: str,
) -> QuotationBulkResult:
    result = await db.execute(
        select(Quotation)
        .where(Quotation.id.in_(quotation_ids))
        .order_by(Quotation.id)
        .with_for_update()
    )
    quotations = list(result.scalars())
    for q in quotations:
        _apply_status(q, status, user_id)

    await db.commit()

    updated = [q.id for q in quotations]
    logger.info("Bulk status %s applied to %d of %d quotation(s)", status.value, len(updated), len(quotation_ids))
    return QuotationBulkResult(requested=len(quotation_ids), affected=len(updated), quotation_ids=updated)


async def bulk_delete(db: AsyncSession, quotation_ids: List[int]) -> QuotationBulkResult:
    existing = list(
        await db.scalars(
            select(Quotation.id).where(Quotation.id.in_(quotation_ids)).order_by(Quotation.id)
        )
    )
    if existing:
        await db.execute(delete(Quotation).where(Quotation.id.in_(existing)))
    await db.commit()

    logger.info("Bulk delete removed %d of %d quotation(s)", len(existing), len(quotation_ids))
    return QuotationBulkResult(requested=len(quotation_ids), affected=len(existing), quotation_ids=existing)


# =====================================================
# COMPARE
# =====================================================

_DIFFERENCE_FIELDS = {
    "status": lambda q: q.status.value,
    "window_type": lambda q: q.primary_window_type,
    "grand_total": lambda q: float(to_decimal(q.total_amount)),
    "client_name": lambda q: q.client_name,
}

_SIMILARITY_FIELDS = {
    "status": lambda q: q.status.value,
    "window_type": lambda q: q.primary_window_type,
    "project": lambda q: q.project,
}


async def compare_quotations(db: AsyncSession, quotation_ids: List[int]) -> QuotationComparison:
    result = await db.execute(select(Quotation).where(Quotation.id.in_(quotation_ids)))
    by_id = {q.id: q for q in result.scalars()}

    missing = [qid for qid in quotation_ids if qid not in by_id]
    if missing:
        raise AppException(
            404,
            "Some quotes were not found",
            ErrorCode.QUOTATION_NOT_FOUND,
            {"missing_ids": missing},
        )

    quotations = [by_id[qid] for qid in quotation_ids]

    differences = {}
    for field, read in _DIFFERENCE_FIELDS.items():
        values = [read(q) for q in quotations]
        if len(set(values)) > 1:
            differences[field] = [
                ComparedValue(id=q.id, quotation_number=q.quotation_number, value=value)
                for q, value in zip(quotations, values)
            ]

    similarities = {}
    for field, read in _SIMILARITY_FIELDS.items():
        values = {read(q) for q in quotations}
        if len(values) == 1:
            similarities[field] = values.pop()

    return QuotationComparison(
        quotations=[_map_quotation(q) for q in quotations],
        differences=differences,
        similarities=similarities,
    )


# =====================================================
# STATS
# =====================================================

async def quotation_stats_summary(db: AsyncSession) -> QuotationStatsOut:
    result = await db.execute(
        select(
            Quotation.status,
            func.count(Quotation.id).label("count"),
            func.coalesce(func.sum(Quotation.total_amount), 0).label("total_value"),
        ).group_by(Quotation.status)
    )
    summary = [
        QuotationStatusSummary(
            status=row.status,
            count=row.count,
            total_value=to_decimal(row.total_value),
        )
        for row in result.all()
    ]

    total_quotes = await db.scalar(select(func.count(Quotation.id))) or 0

    week_ago = date.today() - timedelta(days=7)
    recent_quotes = await db.scalar(
        select(func.count(Quotation.id)).where(Quotation.quotation_date >= week_ago)
    ) or 0

    return QuotationStatsOut(
        summary=summary,
        total_quotes=total_quotes,
        recent_quotes=recent_quotes,
    )


async def quotation_analytics(
    db: AsyncSession,
    date_from: date | None = None,
    date_to: date | None = None,
    top: int = 10,
    trend_days: int = 30,
) -> QuotationAnalyticsOut:
    """Status totals, top clients and window-type mix for quotations created in the range."""
    created_on = func.date(Quotation.created_at)
    filters = []
    if date_from:
        filters.append(created_on >= date_from)
    if date_to:
        filters.append(created_on <= date_to)

    value = func.coalesce(func.sum(Quotation.total_amount), 0)

    status_rows = (
        await db.execute(
            select(Quotation.status, func.count(Quotation.id).label("count"), value.label("total_value"))
            .where(*filters)
            .group_by(Quotation.status)
        )
    ).all()

    by_status = {s.value: 0 for s in QuotationStatus}
    total_value = to_decimal(0)
    for row in status_rows:
        by_status[row.status.value] = row.count
        total_value += to_decimal(row.total_value)
    total = sum(by_status.values())

    decided = (
        by_status[QuotationStatus.submitted.value]
        + by_status[QuotationStatus.approved.value]
        + by_status[QuotationStatus.rejected.value]
    )
    conversion_rate = round(by_status[QuotationStatus.approved.value] / decided * 100, 2) if decided else 0.0

    client_rows = (
        await db.execute(
            select(
                Quotation.client_name,
                func.count(Quotation.id).label("count"),
                value.label("total_value"),
                func.avg(Quotation.total_amount).label("avg_value"),
            )
            .where(*filters)
            .group_by(Quotation.client_name)
            .order_by(desc("total_value"), asc(Quotation.client_name))
            .limit(top)
        )
    ).all()

    type_rows = (
        await db.execute(
            select(
                Quotation.primary_window_type,
                func.count(Quotation.id).label("count"),
                value.label("total_value"),
            )
            .where(*filters)
            .group_by(Quotation.primary_window_type)
            .order_by(desc("count"), asc(Quotation.primary_window_type))
            .limit(top)
        )
    ).all()

    trend_start = date.today() - timedelta(days=trend_days)
    trend_rows = (
        await db.execute(
            select(created_on.label("day"), func.count(Quotation.id).label("count"), value.label("total_value"))
            .where(created_on >= trend_start)
            .group_by(created_on)
            .order_by(created_on)
        )
    ).all()

    return QuotationAnalyticsOut(
        summary=AnalyticsSummary(
            total=total,
            by_status=by_status,
            total_value=total_value,
            avg_value=to_decimal(total_value / total) if total else to_decimal(0),
            conversion_rate=conversion_rate,
        ),
        daily_trends=[
            DailyTrend(day=row.day, count=row.count, total_value=to_decimal(row.total_value))
            for row in trend_rows
        ],
        top_clients=[
            ClientRanking(
                name=row.client_name,
                count=row.count,
                total_value=to_decimal(row.total_value),
                avg_value=to_decimal(row.avg_value),
            )
            for row in client_rows
        ],
        window_types=[
            WindowTypeShare(
                window_type=row.primary_window_type or "unknown",
                count=row.count,
                total_value=to_decimal(row.total_value),
            )
            for row in type_rows
        ],
    )


# =====================================================
# PDF EXPORT
# =====================================================

async def export_quotation_pdf(db: AsyncSession, quotation_id: int) -> RenderedDocument:
    q = await _get_quotation(db, quotation_id)
    rendered = _render(_document_from_quotation(q))

    os.makedirs(config.GENERATED_PDF_DIR, exist_ok=True)
    file_path = os.path.join(config.GENERATED_PDF_DIR, rendered.file_name)
    with open(file_path, "wb") as fh:
        fh.write(rendered.content)

    q.pdf_generated = True
    q.pdf_path = file_path
    await db.commit()

    logger.info("Quotation %s exported to %s", q.quotation_number, file_path)
    return rendered
