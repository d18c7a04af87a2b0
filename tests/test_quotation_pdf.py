import io
from datetime import date

import pytest
from PyPDF2 import PdfReader

from app.schemas.billing.quotation_schemas import ClientInfo, QuotationDocument
from app.utils.pdf_generators.layout import CONTENT_BOTTOM
from app.utils.pdf_generators.quotation_pdf import (
    CONTINUATION_HEADER_BOTTOM,
    ClientRegion,
    EmptyQuotationError,
    SpecificationRegion,
    format_window_type,
    plan_quotation,
    quotation_file_name,
    render_quotation_pdf,
)
from app.utils.pdf_generators.window_diagrams import DiagramOutcome

TODAY = date(2024, 3, 15)


def _document(specs, **overrides):
    data = {
        "quotation_number": "QT-000042",
        "project": "Lakeview Residence",
        "quotation_date": "2024-03-14",
        "client_info": {"name": "Meera Shah", "address": "12 Ring Road", "city": "Surat"},
        "window_specs": specs,
        "transport_cost": 2000,
        "gst_rate": 0.18,
    }
    data.update(overrides)
    return QuotationDocument.model_validate(data)


def _text(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    return "\n".join(page.extract_text() for page in reader.pages)


def test_renders_a_valid_pdf(spec_payload):
    rendered = render_quotation_pdf(_document([spec_payload()]), today=TODAY)

    assert rendered.content.startswith(b"%PDF")
    reader = PdfReader(io.BytesIO(rendered.content))
    assert len(reader.pages) == rendered.page_count
    assert rendered.file_name == "Quotation_QT-000042_2024-03-15.pdf"


def test_every_page_carries_its_number(spec_payload):
    rendered = render_quotation_pdf(_document([spec_payload(), spec_payload(type="casement")]), today=TODAY)
    text = _text(rendered.content)
    for i in range(1, rendered.page_count + 1):
        assert f"Page {i} of {rendered.page_count}" in text
    assert "15/03/2024" in text


def test_document_contains_sections(spec_payload):
    text = _text(render_quotation_pdf(_document([spec_payload()]), today=TODAY).content)
    assert "QT-000042" in text
    assert "Meera Shah" in text
    assert "Window Specification 1: Living Room" in text
    assert "QUOTATION SUMMARY" in text
    assert "Terms & Conditions" in text
    assert "Authorized Signatory" in text


def test_empty_quotation_is_rejected():
    with pytest.raises(EmptyQuotationError):
        render_quotation_pdf(_document([]), today=TODAY)


def test_unknown_type_still_renders(spec_payload):
    spec = spec_payload(type="skylight", name="", location="")
    rendered = render_quotation_pdf(_document([spec]), today=TODAY)
    assert rendered.page_count >= 1
    assert "Window Specification 1: skylight" in _text(rendered.content)


def test_blank_type_gets_placeholder_title():
    assert format_window_type("") == "Custom Window"
    assert format_window_type(None) == "Custom Window"
    assert format_window_type("doublehung") == "Double Hung Window"


def test_missing_client_details_print_na(spec_payload):
    document = _document([spec_payload()], client_info={"name": "Walk-in"}, project=None)
    text = _text(render_quotation_pdf(document, today=TODAY).content)
    assert "Phone: N/A" in text
    assert "Email: N/A" in text


def test_degenerate_window_still_renders(spec_payload):
    spec = spec_payload(dimensions={"width": 0, "height": 0}, pricing={"quantity": 0})
    rendered = render_quotation_pdf(_document([spec]), today=TODAY)
    assert "[Window Diagram]" in _text(rendered.content)


def test_each_window_block_gets_its_own_page(spec_payload):
    document = _document([spec_payload() for _ in range(4)])
    plan = plan_quotation(document)

    per_page = [
        sum(isinstance(region, SpecificationRegion) for region in page.regions)
        for page in plan.pages
    ]
    assert max(per_page) == 1
    assert sum(per_page) == 4
    assert all(page.placements for page in plan.pages)


def test_specification_region_is_taller_than_half_a_page(spec_payload):
    plan = plan_quotation(_document([spec_payload()]))
    region = next(r for p in plan.pages for r in p.regions if isinstance(r, SpecificationRegion))
    usable = CONTENT_BOTTOM - CONTINUATION_HEADER_BOTTOM
    assert region.height > usable / 2


def test_only_first_page_has_brand_header(spec_payload):
    plan = plan_quotation(_document([spec_payload(), spec_payload()]))
    assert plan.pages[0].continued is False
    assert all(page.continued for page in plan.pages[1:])


def test_file_name_is_filesystem_safe():
    assert quotation_file_name("QT/2024 01", TODAY) == "Quotation_QT-2024-01_2024-03-15.pdf"
    assert quotation_file_name("", TODAY) == "Quotation_quotation_2024-03-15.pdf"


def test_long_values_wrap_and_grow_the_window_block(spec_payload):
    short = SpecificationRegion(1, _document([spec_payload()]).window_specs[0], DiagramOutcome.fallback())
    long_location = "North-east corner of the upper floor family lounge facing the garden " * 3
    spec = _document([spec_payload(location=long_location)]).window_specs[0]
    tall = SpecificationRegion(1, spec, DiagramOutcome.fallback())

    assert tall.right_height > short.right_height
    assert tall.height >= short.height


def test_long_client_address_wraps_onto_more_lines():
    short = ClientRegion(ClientInfo(name="Meera Shah", address="12 Ring Road"))
    long = ClientRegion(ClientInfo(name="Meera Shah", address="Flat 1204, Tower B, " * 8))
    assert len(long.lines) > len(short.lines)
    assert long.height > short.height


def test_markup_characters_in_values_render_verbatim(spec_payload):
    document = _document([spec_payload(location="Bay <east> & garden")], project="A & B <Villas>")
    text = _text(render_quotation_pdf(document, today=TODAY).content)
    assert "A & B <Villas>" in text
    assert "Bay <east> & garden" in text
