# app/services/billing/sequence_service.py
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.models.billing.quotation_models import Quotation, QuotationSequence

logger = logging.getLogger(__name__)


def format_quotation_number(prefix: str, value: int) -> str:
    return f"{prefix}-{value:06d}"


async def allocate_quotation_number(db: AsyncSession, prefix: str | None = None) -> str:
    """
    Take the next number from the per-prefix sequence row.

    The row is locked for the rest of the caller's transaction, so two
    concurrent creates can never receive the same number. Numbers already
    taken by caller-supplied quotation numbers are skipped.
    """
    prefix = prefix or config.QUOTATION_PREFIX

    seq = await db.scalar(
        select(QuotationSequence)
        .where(QuotationSequence.prefix == prefix)
        .with_for_update()
    )
    if seq is None:
        seq = QuotationSequence(prefix=prefix, last_value=0)
        db.add(seq)

    while True:
        seq.last_value += 1
        number = format_quotation_number(prefix, seq.last_value)
        taken = await db.scalar(
            select(Quotation.id).where(Quotation.quotation_number == number)
        )
        if taken is None:
            break
        logger.debug("Quotation number %s already in use, skipping", number)

    await db.flush()
    return number
