from sqlalchemy import Column, Integer, String, Numeric, Enum, JSON, Index, CheckConstraint, Boolean, DateTime, Float, ForeignKey
from sqlalchemy.types import Date
from decimal import Decimal
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuthorshipMixin
from app.models.enums.quotation_status import QuotationStatus


class Quotation(Base, TimestampMixin, AuthorshipMixin):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True)
    quotation_number = Column(String(50), nullable=False, unique=True, index=True)
    project = Column(String(255), nullable=True)
    quotation_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=False)
    status = Column(Enum(QuotationStatus), nullable=False, default=QuotationStatus.draft, index=True)

    # Nested records are stored as plain JSON; the pydantic schemas resolve defaults on read
    client_info = Column(JSON, nullable=False)
    company_details = Column(JSON, nullable=True)
    window_specs = Column(JSON, nullable=False, default=list)

    # Denormalised for list filters and summaries; the JSON specs remain the source of truth
    client_name = Column(String(255), nullable=False, index=True)
    primary_window_type = Column(String(50), nullable=True, index=True)

    transport_cost = Column(Float, nullable=False, default=1000.0)
    loading_cost = Column(Float, nullable=False, default=1000.0)
    gst_rate = Column(Float, nullable=False, default=0.18)

    subtotal_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    tax_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    currency = Column(String(3), nullable=False, default="INR")

    notes = Column(String, nullable=True)
    submitted_date = Column(DateTime(timezone=True), nullable=True)
    pdf_generated = Column(Boolean, nullable=False, default=False)
    pdf_path = Column(String(500), nullable=True)

    # Revision lineage: every copy points at the root quotation of its family
    original_quotation_id = Column(
        Integer,
        ForeignKey("quotations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    revision_of = Column(String(50), nullable=True)

    __table_args__ = (
        Index("ix_quotation_client_status", "client_name", "status"),
        CheckConstraint("subtotal_amount >= 0 AND tax_amount >= 0 AND total_amount >= 0", name="ck_quotation_amounts_non_negative"),
        CheckConstraint("transport_cost >= 0 AND loading_cost >= 0 AND gst_rate >= 0", name="ck_quotation_charges_non_negative"),
    )

    def __repr__(self):
        return f"<Quotation {self.quotation_number} status={self.status}>"


class QuotationSequence(Base):
    __tablename__ = "quotation_sequences"

    prefix = Column(String(20), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("last_value >= 0", name="ck_quotation_sequence_non_negative"),
    )

    def __repr__(self):
        return f"<QuotationSequence {self.prefix}={self.last_value}>"
