# tests/test_catalog.py
"""Tests for the catalog service: transforms, read endpoints and debug endpoints."""

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from catalog_service import debug
from catalog_service.main import app as catalog_app
from catalog_service.models import CommunityStory, Event, EventPackage, EventService, Vendor
from catalog_service import schema_check
from catalog_service.schema_check import EXPECTED_COLUMNS, verify_schema
from catalog_service.transforms import count_event_types, parse_currency, slugify, transform_event
import common.db
from common.db import engine, get_db


# --- Transforms ---

@pytest.mark.parametrize("raw,expected", [
    ("₹50,000", 50000),
    ("₹800", 800),
    ("₹50K", 50000),
    ("₹2L", 200000),
    ("₹15L - ₹50L", 1500000),
    ("₹50,000 - ₹5,00,000", 50000),
    ("₹1.5 Cr", 15000000),
    ("Contact for pricing", 0),
    ("", 0),
    (None, 0),
])
def test_parse_currency(raw, expected):
    assert parse_currency(raw) == expected


def test_slugify():
    assert slugify("Corporate Event") == "corporate-event"
    assert slugify("  Photography & Videography ") == "photography-videography"


def test_event_type_counts_are_sorted_by_count_descending():
    result = count_event_types(["Birthday", "Wedding", "Wedding"])

    assert [(r["name"], r["count"]) for r in result] == [("Wedding", 2), ("Birthday", 1)]
    assert result[0]["image"] == "/event-images/wedding.png"


def test_transform_event_derives_price_slug_and_guest_bounds():
    event = Event(id=1, name="Birthday Party", avg_budget="₹50,000", features=["Themes"])

    result = transform_event(event)

    assert result["base_price"] == 50000
    assert result["slug"] == "birthday-party"
    assert result["min_guests"] == 50
    assert result["max_guests"] == 500
    assert result["features"] == ["Themes"]


# --- Endpoints ---

@pytest.fixture
def seeded_events(db_session):
    wedding = Event(name="Wedding", avg_budget="₹15L - ₹50L", min_guests=100, max_guests=1000)
    birthday = Event(name="Birthday Party", avg_budget="₹50,000")
    db_session.add_all([wedding, birthday])
    db_session.flush()
    db_session.add_all([
        EventService(event_id=wedding.id, name="Catering", price="₹800", price_label="Per Plate", category="Catering"),
        EventPackage(event_id=wedding.id, name="Basic", price="₹15L", features=["DJ"], service_ids=[1]),
        EventPackage(event_id=wedding.id, name="Premium", price="₹40L", features=[], service_ids=[1, 2]),
    ])
    db_session.commit()
    return {"wedding": wedding.id, "birthday": birthday.id}


def test_list_events(catalog_client, seeded_events):
    r = catalog_client.get("/events")

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    by_name = {e["name"]: e for e in body["data"]}
    assert by_name["Birthday Party"]["base_price"] == 50000
    assert by_name["Wedding"]["base_price"] == 1500000
    assert by_name["Wedding"]["min_guests"] == 100
    assert by_name["Wedding"]["max_guests"] == 1000


def test_get_single_event_and_unknown_id(catalog_client, seeded_events):
    r = catalog_client.get("/events", params={"id": seeded_events["birthday"]})
    assert r.status_code == 200
    assert r.json()["data"]["slug"] == "birthday-party"

    r_missing = catalog_client.get("/events", params={"id": 999})
    assert r_missing.status_code == 404
    assert r_missing.json() == {"success": False, "error": "Event not found"}


def test_event_services_and_packages(catalog_client, seeded_events):
    event_id = seeded_events["wedding"]

    services = catalog_client.get(f"/events/{event_id}/services").json()["data"]
    assert services[0]["base_price"] == 800

    packages = catalog_client.get(f"/events/{event_id}/packages").json()["data"]
    assert [p["name"] for p in packages] == ["Basic", "Premium"]
    assert packages[1]["services"] == [1, 2]


def test_event_types_only_count_published_stories(catalog_client, db_session):
    db_session.add_all([
        CommunityStory(title="a", event_type="Wedding", is_published=True),
        CommunityStory(title="b", event_type="Birthday", is_published=True),
        CommunityStory(title="c", event_type="Wedding", is_published=True),
        CommunityStory(title="d", event_type="Birthday", is_published=False),
        CommunityStory(title="e", event_type="Birthday", is_published=False),
    ])
    db_session.commit()

    r = catalog_client.get("/event-types")

    assert r.status_code == 200
    data = r.json()["data"]
    assert [{"name": d["name"], "count": d["count"]} for d in data] == [
        {"name": "Wedding", "count": 2},
        {"name": "Birthday", "count": 1},
    ]


@pytest.fixture
def seeded_vendors(db_session):
    db_session.add_all([
        Vendor(name="Royal Feast Catering", category="Catering", rating=4.9, events_count=234,
               location="Mumbai, Delhi", portfolio_images=["https://img/1.jpg", "https://img/2.jpg"]),
        Vendor(name="Beats Entertainment", category="Entertainment", rating=4.7, events_count=98, location="Pune"),
        Vendor(name="Dream Decor", category="Decoration", rating=4.8, events_count=156, location="Mumbai"),
        Vendor(name="Hidden Vendor", category="Catering", rating=5.0, status="pending"),
    ])
    db_session.commit()


def test_list_vendors_orders_by_rating_and_hides_inactive(catalog_client, seeded_vendors):
    r = catalog_client.get("/vendors")

    assert r.status_code == 200
    body = r.json()
    assert [v["name"] for v in body["vendors"]] == ["Royal Feast Catering", "Dream Decor", "Beats Entertainment"]
    assert body["pagination"]["totalItems"] == 3

    royal = body["vendors"][0]
    assert [p["image_url"] for p in royal["portfolio"]] == ["https://img/1.jpg", "https://img/2.jpg"]
    beats = body["vendors"][2]
    assert beats["portfolio"] == []
    assert beats["priceLabel"] == "Custom Quote"


def test_list_vendors_filters_and_pagination(catalog_client, seeded_vendors):
    by_location = catalog_client.get("/vendors", params={"location": "mumbai"}).json()
    assert {v["name"] for v in by_location["vendors"]} == {"Royal Feast Catering", "Dream Decor"}

    by_category = catalog_client.get("/vendors", params={"category": "Catering"}).json()
    assert [v["name"] for v in by_category["vendors"]] == ["Royal Feast Catering"]

    page_two = catalog_client.get("/vendors", params={"page": 2, "limit": 2}).json()
    assert [v["name"] for v in page_two["vendors"]] == ["Beats Entertainment"]
    assert page_two["pagination"]["hasPrevPage"] is True
    assert page_two["pagination"]["hasNextPage"] is False


def test_get_vendor_not_found(catalog_client):
    r = catalog_client.get("/vendors/12345")
    assert r.status_code == 404
    assert r.json()["error"] == "Vendor not found"


def test_database_failure_returns_generic_500(catalog_client):
    class BrokenSession:
        def query(self, *args, **kwargs):
            raise OperationalError("SELECT * FROM events", {}, Exception("connection refused to db.internal"))

        def close(self):
            pass

    catalog_app.dependency_overrides[get_db] = lambda: BrokenSession()

    r = catalog_client.get("/events")

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Failed to fetch events"}


# --- Schema contract and debug endpoints ---

def test_schema_contract_matches_models():
    assert verify_schema(engine) == {}


def test_schema_contract_reports_drift():
    drifted = create_engine("sqlite://", poolclass=StaticPool)
    with drifted.begin() as conn:
        conn.execute(text("CREATE TABLE vendors (id INTEGER PRIMARY KEY, name TEXT, category TEXT)"))

    drift = verify_schema(drifted)

    assert "portfolio_images" in drift["vendors"]
    assert "id" not in drift["vendors"]
    assert "email" in drift["users"]


def test_debug_endpoints_hidden_by_default(catalog_client):
    for path in ("/check-schema", "/debug-users", "/debug-vendors", "/debug-vendors-simple"):
        assert catalog_client.get(path).status_code == 404, path


def test_debug_users_never_exposes_hashes(catalog_client, test_user, monkeypatch):
    monkeypatch.setattr(debug, "DEBUG_ENDPOINTS_ENABLED", True)

    r = catalog_client.get("/debug-users")

    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    assert "password_hash" not in body["users"][0]
    assert body["users"][0]["has_password"] is True


def test_check_schema_reports_columns_and_contract(catalog_client, monkeypatch):
    monkeypatch.setattr(debug, "DEBUG_ENDPOINTS_ENABLED", True)

    body = catalog_client.get("/check-schema").json()

    assert body["schema"]["full_name"]["exists"] is True
    assert body["schema"]["fullName"]["exists"] is False
    assert body["contract"]["drift"] == {}


def test_debug_vendors_simple_counts_rows(catalog_client, seeded_vendors, monkeypatch):
    monkeypatch.setattr(debug, "DEBUG_ENDPOINTS_ENABLED", True)

    body = catalog_client.get("/debug-vendors-simple").json()

    assert body["vendorCount"] == 4
    assert len(body["vendors"]) == 2


def test_debug_vendors_lists_columns_and_samples(catalog_client, seeded_vendors, monkeypatch):
    monkeypatch.setattr(debug, "DEBUG_ENDPOINTS_ENABLED", True)

    r = catalog_client.get("/debug-vendors")

    assert r.status_code == 200
    body = r.json()
    column_names = [c["name"] for c in body["columns"]]
    assert "portfolio_images" in column_names
    assert body["expected"] == EXPECTED_COLUMNS["vendors"]
    assert len(body["vendors"]) == 3


def test_schema_check_exit_codes(monkeypatch):
    assert schema_check.main() == 0

    drifted = create_engine("sqlite://", poolclass=StaticPool)
    monkeypatch.setattr(common.db, "engine", drifted)
    assert schema_check.main() == 1

    monkeypatch.setattr(common.db, "engine", None)
    assert schema_check.main() == 1
