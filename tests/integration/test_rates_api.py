from conftest import RATE_DATE, SAMPLE_RATES

from jewelbook.core.database import get_database_manager


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "jewelbook"


def test_operator_header_required(client):
    assert client.get("/rates/").status_code == 401
    assert client.get("/rates/", headers={"X-Username": "nobody"}).status_code == 401


def test_save_and_read_rate_sheet(owner):
    response = owner.put(f"/rates/{RATE_DATE}", json={"rates": SAMPLE_RATES})
    assert response.status_code == 200
    assert len(response.json()["rates"]) == 3

    body = owner.get("/rates/", params={"date": RATE_DATE}).json()
    assert body["rate_date"] == RATE_DATE
    assert body["is_fallback"] is False
    gold_22 = [r for r in body["rates"] if r["material"] == "gold" and r["karat"] == "22K"]
    assert gold_22[0]["n_price"] == 5600
    assert gold_22[0]["inserted_by"] == "owner"


def test_upsert_replaces_prices(owner):
    owner.put(f"/rates/{RATE_DATE}", json={"rates": SAMPLE_RATES})
    response = owner.put(f"/rates/{RATE_DATE}", json={"rates": [
        {"material": "gold", "karat": "22k", "n_price": 5650, "o_price": 5450},
    ]})
    assert response.status_code == 200

    rates = owner.get("/rates/", params={"date": RATE_DATE}).json()["rates"]
    assert len(rates) == 3
    gold_22 = [r for r in rates if r["karat"] == "22K"][0]
    assert gold_22["n_price"] == 5650


def test_fallback_to_previous_sheet(owner):
    owner.put(f"/rates/{RATE_DATE}", json={"rates": SAMPLE_RATES})

    without = owner.get("/rates/", params={"date": "2024-05-04"}).json()
    assert without["rates"] == []
    assert without["rate_date"] is None

    body = owner.get("/rates/", params={"date": "2024-05-04", "fallback": "true"}).json()
    assert body["rate_date"] == RATE_DATE
    assert body["is_fallback"] is True
    assert len(body["rates"]) == 3


def test_rate_sheet_validation(owner):
    duplicate = [
        {"material": "gold", "karat": "22K", "n_price": 1, "o_price": 1},
        {"material": "gold", "karat": "22k", "n_price": 2, "o_price": 2},
    ]
    assert owner.put(f"/rates/{RATE_DATE}", json={"rates": duplicate}).status_code == 400

    platinum = [{"material": "platinum", "karat": "950", "n_price": 1, "o_price": 1}]
    assert owner.put(f"/rates/{RATE_DATE}", json={"rates": platinum}).status_code == 400

    negative = [{"material": "gold", "karat": "24K", "n_price": -1, "o_price": 1}]
    assert owner.put(f"/rates/{RATE_DATE}", json={"rates": negative}).status_code == 422

    assert owner.put("/rates/2024-13-01", json={"rates": SAMPLE_RATES}).status_code == 400
    assert owner.put(f"/rates/{RATE_DATE}", json={"rates": []}).status_code == 422


def test_staff_can_manage_rates(staff):
    response = staff.put(f"/rates/{RATE_DATE}", json={"rates": SAMPLE_RATES})
    assert response.status_code == 200
    assert response.json()["rates"][0]["inserted_by"] == "meena"


def test_rate_update_is_audited(owner):
    owner.put(f"/rates/{RATE_DATE}", json={"rates": SAMPLE_RATES})

    with get_database_manager().get_cursor() as cursor:
        cursor.execute("SELECT * FROM activity_log WHERE table_name = 'daily_rates'")
        rows = cursor.fetchall()

    assert len(rows) == 1
    assert rows[0]["action"] == "upsert"
    assert rows[0]["username"] == "owner"
    assert RATE_DATE in rows[0]["description"]


def test_rate_history(owner):
    owner.put("/rates/2024-05-01", json={"rates": SAMPLE_RATES})
    owner.put("/rates/2024-05-02", json={"rates": [
        {"material": "gold", "karat": "24K", "n_price": 6100, "o_price": 5900},
    ]})

    body = owner.get("/rates/history", params={
        "material": "gold", "karat": "24k", "from_date": "2024-05-01", "to_date": "2024-05-31",
    }).json()
    assert [row["n_price"] for row in body["history"]] == [6000, 6100]
