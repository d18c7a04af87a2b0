from datetime import date, timedelta
import os
import re
import uuid

import pytest

from app.schemas.billing.quotation_schemas import WindowSpecification
from app.services.billing.pricing_service import aggregate_totals


def _client_name():
    return f"Client {uuid.uuid4().hex[:8]}"


def _create(client, spec_payload, **overrides):
    payload = {
        "project": "Sunrise Villas",
        "client_info": {"name": _client_name(), "phone": "9800000000"},
        "window_specs": [spec_payload()],
    }
    payload.update(overrides)
    res = client.post("/quotations", json=payload)
    assert res.status_code == 200, res.text
    return res.json()["data"]


def test_health(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_catalog(client):
    res = client.get("/quotations/catalog")
    data = res.json()["data"]
    assert "sliding" in data["window_types"]
    assert data["frame_materials"]["wooden"]["price_multiplier"] == 1.8
    assert "colonial" in data["grille_styles"]


def test_price_preview_returns_computed_values(client, spec_payload):
    res = client.post("/quotations/price-preview", json=spec_payload())
    assert res.status_code == 200
    computed = res.json()["data"]["computed_values"]
    expected = WindowSpecification.model_validate(spec_payload()).computed_values
    assert computed["area_sqft"] == pytest.approx(expected.area_sqft)
    assert computed["total_price"] == pytest.approx(expected.total_price)


def test_window_type_change(client, spec_payload):
    res = client.post("/quotations/window-type", json={"window": spec_payload(), "type": "louvered"})
    data = res.json()["data"]
    assert data["type"] == "louvered"
    assert data["specifications"]["panels"] == 8


def test_totals_preview(client, spec_payload):
    specs = [spec_payload(), spec_payload(type="casement")]
    res = client.post(
        "/quotations/totals-preview",
        json={"window_specs": specs, "transport_cost": 500, "loading_cost": 500, "gst_rate": 0.18},
    )
    data = res.json()["data"]
    expected = aggregate_totals([WindowSpecification.model_validate(s) for s in specs], 1000, 0.18)
    assert data["component_count"] == 2
    assert data["grand_total"] == pytest.approx(expected.grand_total)


def test_totals_preview_empty(client):
    data = client.post("/quotations/totals-preview", json={"window_specs": []}).json()["data"]
    assert data["grand_total"] == 0
    assert data["transport_cost"] == 0


@pytest.mark.parametrize(
    "body",
    [
        '{"pricing": {"quantity": 1e400}}',
        '{"specifications": {"panels": 1e400, "tracks": "Infinity"}}',
        '{"dimensions": {"width": 1e400, "height": 1500}}',
    ],
)
def test_price_preview_clamps_non_finite_numbers(client, body):
    res = client.post("/quotations/price-preview", content=body, headers={"Content-Type": "application/json"})
    assert res.status_code == 200, res.text
    computed = res.json()["data"]["computed_values"]
    assert all(isinstance(v, (int, float)) and v < 1e300 for v in computed.values())


def test_create_with_infinite_quantity_is_stored_as_zero(client):
    body = '{"client_info": {"name": "Overflow Ltd"}, "window_specs": [{"pricing": {"quantity": 1e400}}]}'
    res = client.post("/quotations", content=body, headers={"Content-Type": "application/json"})
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert data["window_specs"][0]["pricing"]["quantity"] == 0
    assert data["totals"]["subtotal"] == 0


def test_create_allocates_number_and_totals(client, spec_payload):
    data = _create(client, spec_payload)

    assert re.fullmatch(r"QT-\d{6}", data["quotation_number"])
    assert data["status"] == "draft"
    assert data["transport_cost"] == 1000
    assert data["loading_cost"] == 1000
    assert data["window_specs"][0]["id"] == "W1"
    assert data["valid_until"] > data["quotation_date"]

    spec = WindowSpecification.model_validate(spec_payload())
    expected = aggregate_totals([spec], 2000, 0.18)
    assert data["totals"]["subtotal"] == pytest.approx(expected.subtotal)
    assert data["totals"]["grand_total"] == pytest.approx(expected.grand_total)


def test_numbers_are_unique(client, spec_payload):
    first = _create(client, spec_payload)["quotation_number"]
    second = _create(client, spec_payload)["quotation_number"]
    assert first != second


def test_supplied_number_must_be_unique(client, spec_payload):
    number = f"CUSTOM-{uuid.uuid4().hex[:6]}"
    assert _create(client, spec_payload, quotation_number=number)["quotation_number"] == number

    res = client.post(
        "/quotations",
        json={"quotation_number": number, "client_info": {"name": "Someone"}, "window_specs": []},
    )
    assert res.status_code == 409
    assert res.json()["error_code"] == "QUOTATION_NUMBER_EXISTS"


def test_client_name_is_required(client):
    res = client.post("/quotations", json={"client_info": {"name": "  "}, "window_specs": []})
    assert res.status_code == 422
    assert res.json()["success"] is False
    assert res.json()["error_code"] == "VALIDATION_ERROR"


def test_get_by_id_and_number(client, spec_payload):
    created = _create(client, spec_payload)

    by_id = client.get(f"/quotations/{created['id']}").json()["data"]
    by_number = client.get(f"/quotations/number/{created['quotation_number']}").json()["data"]
    assert by_id["id"] == by_number["id"] == created["id"]


def test_missing_quotation_is_404(client):
    res = client.get("/quotations/999999")
    assert res.status_code == 404
    body = res.json()
    assert body["error_code"] == "QUOTATION_NOT_FOUND"
    assert body["message"] == "Quote not found"

    assert client.get("/quotations/number/NOPE-1").status_code == 404


def test_list_filters(client, spec_payload):
    name = _client_name()
    _create(client, spec_payload, client_info={"name": name})
    _create(client, spec_payload, client_info={"name": name}, window_specs=[spec_payload(type="bay")])

    res = client.get("/quotations", params={"client_name": name})
    data = res.json()["data"]
    assert data["total"] == 2
    assert {item["client_name"] for item in data["items"]} == {name}

    bays = client.get("/quotations", params={"client_name": name, "window_type": "bay"}).json()["data"]
    assert bays["total"] == 1
    assert bays["items"][0]["window_type"] == "bay"

    searched = client.get("/quotations", params={"search": name.split()[-1]}).json()["data"]
    assert searched["total"] == 2


def test_list_pagination(client, spec_payload):
    name = _client_name()
    for _ in range(3):
        _create(client, spec_payload, client_info={"name": name})

    page = client.get("/quotations", params={"client_name": name, "page": 2, "page_size": 2}).json()["data"]
    assert page["total"] == 3
    assert page["total_pages"] == 2
    assert len(page["items"]) == 1
    assert page["has_prev"] is True
    assert page["has_next"] is False


def test_list_price_range(client, spec_payload):
    name = _client_name()
    created = _create(client, spec_payload, client_info={"name": name})
    total = created["totals"]["grand_total"]

    inside = client.get("/quotations", params={"client_name": name, "price_from": total - 1, "price_to": total + 1})
    outside = client.get("/quotations", params={"client_name": name, "price_from": total + 1})
    assert inside.json()["data"]["total"] == 1
    assert outside.json()["data"]["total"] == 0


def test_update_recalculates_totals(client, spec_payload):
    created = _create(client, spec_payload)
    specs = [spec_payload(), spec_payload(pricing={"quantity": 5})]

    res = client.put(
        f"/quotations/{created['id']}",
        json={"window_specs": specs, "transport_cost": 0, "loading_cost": 0, "user_id": "Ravi"},
    )
    data = res.json()["data"]
    expected = aggregate_totals([WindowSpecification.model_validate(s) for s in specs], 0, 0.18)
    assert data["totals"]["grand_total"] == pytest.approx(expected.grand_total)
    assert data["last_modified_by"] == "Ravi"
    assert [s["id"] for s in data["window_specs"]] == ["W1", "W2"]


def test_update_gst_rate_only(client, spec_payload):
    created = _create(client, spec_payload)
    data = client.put(f"/quotations/{created['id']}", json={"gst_rate": 0.05}).json()["data"]
    assert data["gst_rate"] == 0.05
    assert data["totals"]["gst_amount"] == pytest.approx(data["totals"]["taxable_amount"] * 0.05)


def test_status_overwrite_is_last_write_wins(client, spec_payload):
    created = _create(client, spec_payload)
    url = f"/quotations/{created['id']}/status"

    assert client.patch(url, json={"status": "approved"}).json()["data"]["status"] == "approved"
    assert client.patch(url, json={"status": "draft"}).json()["data"]["status"] == "draft"
    assert client.patch(url, json={"status": "expired"}).status_code == 422


def test_submit_once(client, spec_payload):
    created = _create(client, spec_payload)
    url = f"/quotations/{created['id']}/submit"

    first = client.patch(url)
    assert first.status_code == 200
    assert first.json()["data"]["status"] == "submitted"
    assert first.json()["data"]["submitted_date"] is not None

    second = client.patch(url)
    assert second.status_code == 400
    assert second.json()["error_code"] == "QUOTATION_ALREADY_SUBMITTED"


def test_duplicate_creates_new_draft(client, spec_payload):
    created = _create(client, spec_payload, window_specs=[spec_payload(), spec_payload()])
    client.patch(f"/quotations/{created['id']}/submit")

    res = client.post(f"/quotations/{created['id']}/duplicate", json={"user_id": "Nisha"})
    copy = res.json()["data"]
    assert copy["id"] != created["id"]
    assert copy["quotation_number"] != created["quotation_number"]
    assert copy["status"] == "draft"
    assert copy["submitted_date"] is None
    assert copy["created_by"] == "Nisha"
    assert len(copy["window_specs"]) == 2
    assert copy["totals"]["grand_total"] == pytest.approx(created["totals"]["grand_total"])


def test_delete(client, spec_payload):
    created = _create(client, spec_payload)

    res = client.delete(f"/quotations/{created['id']}")
    assert res.status_code == 200
    assert res.json()["data"]["quotation_number"] == created["quotation_number"]
    assert client.get(f"/quotations/{created['id']}").status_code == 404
    assert client.delete(f"/quotations/{created['id']}").status_code == 404


def test_stats_summary(client, spec_payload):
    before = client.get("/quotations/stats/summary").json()["data"]
    _create(client, spec_payload)
    after = client.get("/quotations/stats/summary").json()["data"]

    assert after["total_quotes"] == before["total_quotes"] + 1
    assert after["recent_quotes"] == before["recent_quotes"] + 1
    statuses = {row["status"] for row in after["summary"]}
    assert "draft" in statuses


def test_export_pdf_marks_quotation(client, spec_payload, pdf_dir):
    created = _create(client, spec_payload)

    res = client.get(f"/quotations/{created['id']}/pdf")
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content.startswith(b"%PDF")
    disposition = res.headers["content-disposition"]
    assert f"Quotation_{created['quotation_number']}_" in disposition
    assert int(res.headers["x-page-count"]) >= 1

    file_name = re.search(r'filename="([^"]+)"', disposition).group(1)
    assert os.path.exists(os.path.join(pdf_dir, file_name))
    assert client.get(f"/quotations/{created['id']}").json()["data"]["pdf_generated"] is True


def test_export_pdf_of_empty_quotation_is_rejected(client):
    res = client.post("/quotations", json={"client_info": {"name": "Empty Co"}, "window_specs": []})
    created = res.json()["data"]
    assert created["totals"]["grand_total"] == 0

    res = client.get(f"/quotations/{created['id']}/pdf")
    assert res.status_code == 400
    assert res.json()["error_code"] == "QUOTATION_EMPTY"


def test_render_unsaved_quotation(client, spec_payload):
    payload = {
        "quotation_number": "DRAFT-PREVIEW",
        "quotation_date": "2024-05-01",
        "client_info": {"name": "Preview Client"},
        "window_specs": [spec_payload(type="pivot")],
    }
    res = client.post("/quotations/pdf", json=payload)
    assert res.status_code == 200
    assert res.content.startswith(b"%PDF")
    assert "Quotation_DRAFT-PREVIEW_" in res.headers["content-disposition"]


@pytest.mark.parametrize(
    "overrides",
    [{"transport_cost": -500}, {"gst_rate": -0.18}, {"gst_rate": 1.5}],
)
def test_render_unsaved_quotation_rejects_bad_charges(client, spec_payload, overrides):
    payload = {
        "quotation_number": "DRAFT-PREVIEW",
        "quotation_date": "2024-05-01",
        "client_info": {"name": "Preview Client"},
        "window_specs": [spec_payload()],
        **overrides,
    }
    res = client.post("/quotations/pdf", json=payload)
    assert res.status_code == 422
    assert res.json()["error_code"] == "VALIDATION_ERROR"


def test_duplicate_records_revision_lineage(client, spec_payload):
    root = _create(client, spec_payload)
    first = client.post(f"/quotations/{root['id']}/duplicate").json()["data"]
    second = client.post(f"/quotations/{first['id']}/duplicate").json()["data"]

    assert first["original_quotation_id"] == root["id"]
    assert first["revision_of"] == root["quotation_number"]
    assert second["original_quotation_id"] == root["id"]
    assert second["revision_of"] == first["quotation_number"]

    for member in (root, first, second):
        res = client.get(f"/quotations/{member['id']}/revisions")
        assert res.status_code == 200
        assert [q["id"] for q in res.json()["data"]] == [root["id"], first["id"], second["id"]]


def test_revisions_of_missing_quotation_is_404(client):
    assert client.get("/quotations/999999/revisions").status_code == 404


def test_deleting_root_keeps_its_copies(client, spec_payload):
    root = _create(client, spec_payload)
    copy = client.post(f"/quotations/{root['id']}/duplicate").json()["data"]

    client.delete(f"/quotations/{root['id']}")
    orphan = client.get(f"/quotations/{copy['id']}").json()["data"]
    assert orphan["original_quotation_id"] is None
    assert orphan["revision_of"] == root["quotation_number"]


def test_bulk_status(client, spec_payload):
    ids = [_create(client, spec_payload)["id"] for _ in range(2)]

    res = client.post(
        "/quotations/bulk/status",
        json={"quotation_ids": ids + [999999], "status": "submitted", "user_id": "Asha"},
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["requested"] == 3
    assert data["affected"] == 2
    assert sorted(data["quotation_ids"]) == sorted(ids)

    for qid in ids:
        quotation = client.get(f"/quotations/{qid}").json()["data"]
        assert quotation["status"] == "submitted"
        assert quotation["submitted_date"] is not None
        assert quotation["last_modified_by"] == "Asha"


def test_bulk_status_requires_ids_and_valid_status(client):
    assert client.post("/quotations/bulk/status", json={"quotation_ids": [], "status": "approved"}).status_code == 422
    assert client.post("/quotations/bulk/status", json={"quotation_ids": [1], "status": "lost"}).status_code == 422


def test_bulk_delete(client, spec_payload):
    ids = [_create(client, spec_payload)["id"] for _ in range(2)]

    res = client.post("/quotations/bulk/delete", json={"quotation_ids": ids + [ids[0]]})
    data = res.json()["data"]
    assert data["requested"] == 2
    assert data["affected"] == 2
    assert all(client.get(f"/quotations/{qid}").status_code == 404 for qid in ids)

    assert client.post("/quotations/bulk/delete", json={"quotation_ids": []}).status_code == 422


def test_compare(client, spec_payload):
    name = _client_name()
    a = _create(client, spec_payload, client_info={"name": name}, project="Tower A")
    b = _create(
        client, spec_payload, client_info={"name": name}, project="Tower A",
        window_specs=[spec_payload(type="bay", pricing={"quantity": 5})],
    )

    res = client.post("/quotations/compare", json={"quotation_ids": [b["id"], a["id"]]})
    assert res.status_code == 200
    data = res.json()["data"]
    assert [q["id"] for q in data["quotations"]] == [b["id"], a["id"]]
    assert set(data["differences"]) == {"window_type", "grand_total"}
    assert [v["value"] for v in data["differences"]["window_type"]] == ["bay", "sliding"]
    assert data["similarities"] == {"status": "draft", "project": "Tower A"}


@pytest.mark.parametrize("count", [1, 6])
def test_compare_needs_two_to_five_quotations(client, count):
    res = client.post("/quotations/compare", json={"quotation_ids": list(range(1, count + 1))})
    assert res.status_code == 422


def test_compare_reports_missing_quotations(client, spec_payload):
    existing = _create(client, spec_payload)["id"]
    res = client.post("/quotations/compare", json={"quotation_ids": [existing, 999999]})
    assert res.status_code == 404
    assert res.json()["details"]["missing_ids"] == [999999]


def test_analytics(client, spec_payload):
    name = _client_name()
    big = _create(client, spec_payload, client_info={"name": name},
                  window_specs=[spec_payload(pricing={"quantity": 500})])
    client.patch(f"/quotations/{big['id']}/status", json={"status": "approved"})

    today = date.today()
    res = client.get(
        "/quotations/analytics",
        params={"date_from": (today - timedelta(days=1)).isoformat(), "date_to": (today + timedelta(days=1)).isoformat()},
    )
    assert res.status_code == 200
    data = res.json()["data"]

    summary = data["summary"]
    assert summary["total"] == sum(summary["by_status"].values())
    assert summary["by_status"]["approved"] >= 1
    assert 0 < summary["conversion_rate"] <= 100
    assert set(summary["by_status"]) == {"draft", "submitted", "approved", "rejected", "archived"}

    assert len(data["top_clients"]) <= 10
    assert data["top_clients"][0]["name"] == name
    assert any(row["window_type"] == "sliding" for row in data["window_types"])
    last_day = date.fromisoformat(data["daily_trends"][-1]["day"])
    assert abs((last_day - today).days) <= 1


def test_analytics_outside_range_is_empty(client):
    data = client.get("/quotations/analytics", params={"date_to": "2000-01-01"}).json()["data"]
    assert data["summary"]["total"] == 0
    assert data["summary"]["conversion_rate"] == 0
    assert data["top_clients"] == []
