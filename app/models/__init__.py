# Billing
from app.models.billing.quotation_models import Quotation, QuotationSequence
