import pytest

from jewelbook.core.database import get_database_manager


def test_create_sale_prices_from_rates(owner, rates, make_sale):
    response = owner.post("/sales/", json=make_sale())
    assert response.status_code == 200

    sale = response.json()["sale"]
    assert sale["p_cost"] == pytest.approx(54960.0)
    assert sale["s_cost"] == pytest.approx(61600.0)
    assert sale["profit"] == pytest.approx(6640.0)
    assert sale["karat"] == "22K"
    assert sale["inserted_by"] == "owner"


def test_profit_from_client_is_ignored(owner, rates, make_sale):
    sale = owner.post("/sales/", json=make_sale(profit=1)).json()["sale"]
    assert sale["profit"] == pytest.approx(6640.0)


def test_sale_with_old_material_trade_in(owner, rates, make_sale):
    sale = owner.post("/sales/", json=make_sale(o1_gram=5, o1_purity=75)).json()["sale"]
    assert sale["o_cost"] == pytest.approx(21750.0)
    assert sale["profit"] == pytest.approx(-15110.0)


def test_silver_sale_uses_base_rate(owner, rates, make_sale):
    payload = make_sale(material="silver", karat=None, tag_no="S-1", p_grams=100,
                        p_purity=92.5, wastage=0)
    sale = owner.post("/sales/", json=payload).json()["sale"]
    assert sale["p_cost"] == pytest.approx(7400.0)
    assert sale["s_cost"] == pytest.approx(8000.0)
    assert sale["profit"] == pytest.approx(600.0)


def test_missing_required_fields(owner, rates, make_sale):
    payload = make_sale()
    del payload["customer_phone"]
    payload["tag_no"] = "  "

    response = owner.post("/sales/", json=payload)
    assert response.status_code == 400
    assert "customer_phone" in response.json()["detail"]
    assert "tag_no" in response.json()["detail"]


def test_sale_without_rates_is_rejected(owner, rates, make_sale):
    response = owner.post("/sales/", json=make_sale(asof_date="2024-04-01"))
    assert response.status_code == 400
    assert "rate" in response.json()["detail"]


def test_selling_cost_or_wastage_required(owner, rates, make_sale):
    payload = make_sale()
    del payload["wastage"]
    assert owner.post("/sales/", json=payload).status_code == 400


def test_duplicate_tag_on_same_day(owner, staff, rates, make_sale):
    assert staff.post("/sales/", json=make_sale()).status_code == 200

    response = owner.post("/sales/", json=make_sale(customer_name="Someone Else"))
    assert response.status_code == 409
    assert response.json()["detail"]["inserted_by"] == "meena"

    assert owner.post("/sales/", json=make_sale(asof_date="2024-05-02")).status_code == 200


def test_quote_does_not_save(owner, rates, make_sale):
    response = owner.post("/sales/quote", json=make_sale(asof_date="2024-05-03", s_cost=61600, wastage=None))
    assert response.status_code == 200
    body = response.json()
    assert body["sale"]["wastage"] == pytest.approx(10.0)
    assert body["pricing"]["rate_date"] == "2024-05-01"
    assert body["pricing"]["rates_used"]["selling_rate"] == 5600

    assert owner.get("/sales/").json()["total"] == 0


def test_staff_never_sees_profit(owner, staff, rates, make_sale):
    created = staff.post("/sales/", json=make_sale()).json()
    assert "profit" not in created["sale"]

    sale_id = created["sale_id"]
    assert "profit" not in staff.get(f"/sales/{sale_id}").json()["sale"]
    assert "profit" not in staff.get("/sales/").json()["sales"][0]
    assert "profit" not in staff.post("/sales/quote", json=make_sale()).json()["sale"]

    summary = staff.get("/sales/analytics/summary").json()["summary"]
    assert "profit" not in summary["totals"]

    assert owner.get(f"/sales/{sale_id}").json()["sale"]["profit"] == pytest.approx(6640.0)


def test_list_filters(owner, rates, make_sale):
    owner.post("/sales/", json=make_sale())
    owner.post("/sales/", json=make_sale(tag_no="S-9", material="silver", karat=None,
                                         customer_name="Ravi Kumar", customer_phone="9000000001",
                                         p_grams=50, p_purity=92.5))

    assert owner.get("/sales/").json()["total"] == 2
    assert owner.get("/sales/", params={"material": "silver"}).json()["total"] == 1
    assert owner.get("/sales/", params={"tag_no": "G-1001"}).json()["total"] == 1

    by_customer = owner.get("/sales/", params={"customer": "ravi"}).json()
    assert by_customer["total"] == 1
    assert by_customer["sales"][0]["tag_no"] == "S-9"


def test_update_reprices_changed_inputs(owner, rates, make_sale):
    sale_id = owner.post("/sales/", json=make_sale()).json()["sale_id"]

    response = owner.put(f"/sales/{sale_id}", json={"p_grams": 12})
    assert response.status_code == 200
    sale = response.json()["sale"]
    assert sale["p_cost"] == pytest.approx(65952.0)
    assert sale["s_cost"] == pytest.approx(73920.0)
    assert sale["wastage"] == pytest.approx(10.0)
    assert sale["profit"] == pytest.approx(7968.0)


def test_update_selling_cost_rederives_wastage(owner, rates, make_sale):
    sale_id = owner.post("/sales/", json=make_sale()).json()["sale_id"]

    sale = owner.put(f"/sales/{sale_id}", json={"s_cost": 63000}).json()["sale"]
    assert sale["wastage"] == pytest.approx(12.5)
    assert sale["p_cost"] == pytest.approx(54960.0)
    assert sale["profit"] == pytest.approx(8040.0)


def test_update_customer_keeps_prices(owner, rates, make_sale):
    sale_id = owner.post("/sales/", json=make_sale()).json()["sale_id"]

    sale = owner.put(f"/sales/{sale_id}", json={"customer_name": "Lakshmi R. Iyer"}).json()["sale"]
    assert sale["customer_name"] == "Lakshmi R. Iyer"
    assert sale["s_cost"] == pytest.approx(61600.0)


def test_update_into_duplicate_tag(owner, rates, make_sale):
    owner.post("/sales/", json=make_sale())
    other_id = owner.post("/sales/", json=make_sale(tag_no="G-2002")).json()["sale_id"]

    assert owner.put(f"/sales/{other_id}", json={"tag_no": "G-1001"}).status_code == 409
    assert owner.put("/sales/999", json={"tag_no": "X"}).status_code == 404


def test_delete_sale(owner, rates, make_sale):
    sale_id = owner.post("/sales/", json=make_sale()).json()["sale_id"]

    assert owner.delete(f"/sales/{sale_id}").status_code == 200
    assert owner.get(f"/sales/{sale_id}").status_code == 404
    assert owner.get("/sales/").json()["total"] == 0
    assert owner.post("/sales/", json=make_sale()).status_code == 200


def test_sales_summary(owner, rates, make_sale):
    owner.post("/sales/", json=make_sale())
    owner.post("/sales/", json=make_sale(tag_no="G-2002"))

    summary = owner.get("/sales/analytics/summary", params={
        "start_date": "2024-05-01", "end_date": "2024-05-01",
    }).json()["summary"]
    assert summary["totals"]["count"] == 2
    assert summary["totals"]["profit"] == pytest.approx(13280.0)
    assert summary["by_material"][0]["material"] == "gold"


def test_sale_insert_is_audited(owner, rates, make_sale):
    sale_id = owner.post("/sales/", json=make_sale()).json()["sale_id"]

    with get_database_manager().get_cursor() as cursor:
        cursor.execute(
            "SELECT * FROM activity_log WHERE table_name = 'sales_log' AND row_id = ?",
            (sale_id,)
        )
        row = cursor.fetchone()

    assert row["action"] == "insert"
    assert "Bangle" in row["description"]
    assert "6640.00" in row["description"]


def test_clearing_wastage_alone_is_rejected(owner, rates, make_sale):
    sale_id = owner.post("/sales/", json=make_sale()).json()["sale_id"]

    response = owner.put(f"/sales/{sale_id}", json={"wastage": None})
    assert response.status_code == 400
    assert owner.get(f"/sales/{sale_id}").json()["sale"]["wastage"] == 10


def test_sale_update_timestamp_uses_database_clock(owner, rates, make_sale):
    sale_id = owner.post("/sales/", json=make_sale()).json()["sale_id"]
    sale = owner.put(f"/sales/{sale_id}", json={"customer_name": "Lakshmi R"}).json()["sale"]

    assert "T" not in sale["updated_at"]
    assert sale["created_at"] <= sale["updated_at"]
