"""
End to end: portal views -> DataAccessClient -> in-process API.
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from housecheck.app.main import app
from housecheck.portal.client import DataAccessClient
from housecheck.portal.cli import build_portal
from housecheck.portal.errors import (
    AuthenticationError,
    BackendError,
    FormValidationError,
    NotFoundError,
)
from housecheck.portal.session import SessionProvider
from housecheck.portal.uploader import LocalImage
from housecheck.portal.views import DashboardView, HouseDetailView, InspectionDetailView

from conftest import BASE_URL

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 32


@pytest.fixture
def dashboard(session, notifier):
    view = DashboardView(session, notifier)
    view.load()
    return view


def add_house(dashboard, name="Maple", address=None):
    return dashboard.create_house(name, address)


# ============================================================================
# Session
# ============================================================================

class TestSession:
    def test_views_require_sign_in(self, portal_client, notifier):
        view = DashboardView(SessionProvider(portal_client), notifier)
        with pytest.raises(AuthenticationError):
            view.load()

    def test_token_survives_restart(self, session, storage, tmp_path):
        restored, _ = build_portal(BASE_URL, tmp_path / "session.json", http=TestClient(app))
        assert restored.require_identity().email == "owner@example.com"

    def test_sign_out_clears_identity_and_file(self, session, tmp_path):
        session.sign_out()
        assert not (tmp_path / "session.json").exists()
        assert session.current_identity() is None

    def test_rejected_token_is_reported_as_lost_session(self, session, notifier, tmp_path):
        session.require_identity()
        session.client.set_token("not-a-valid-jwt")

        with pytest.raises(AuthenticationError):
            DashboardView(session, notifier).load()

        assert notifier.messages[-1] == "Your session has expired. Please sign in again"
        assert session.current_identity() is None
        assert not session.client.has_token
        assert not (tmp_path / "session.json").exists()

    def test_rejected_token_on_parent_fetch(self, dashboard, session, notifier):
        house = add_house(dashboard)
        session.client.set_token("not-a-valid-jwt")
        with pytest.raises(AuthenticationError):
            HouseDetailView(session, notifier, house.id).load()

    def test_bad_credentials(self, portal_client):
        provider = SessionProvider(portal_client)
        with pytest.raises(BackendError) as exc:
            provider.sign_in("nobody@example.com", "secret123")
        assert exc.value.status_code == 401


# ============================================================================
# Dashboard
# ============================================================================

class TestDashboard:
    def test_create_trims_and_prepends(self, dashboard, notifier):
        add_house(dashboard, "First")
        house = dashboard.create_house(" Main St ", "")

        assert house.name == "Main St"
        assert house.address is None
        assert house.inspection_count == 0
        assert [h.name for h in dashboard.houses] == ["Main St", "First"]
        assert notifier.messages[-1] == "House created successfully"

    def test_blank_name_never_reaches_backend(self, dashboard, notifier, portal_client):
        with pytest.raises(FormValidationError):
            dashboard.create_house("   ")
        assert notifier.messages[-1] == "House name is required"
        assert portal_client.list_houses() == []

    def test_update_and_delete_patch_the_store(self, dashboard):
        house = add_house(dashboard, "Old", "1 Elm")
        dashboard.update_house(house.id, "New", "2 Oak")
        assert dashboard.houses.get(house.id).name == "New"
        assert dashboard.houses.get(house.id).address == "2 Oak"

        dashboard.delete_house(house.id)
        assert len(dashboard.houses) == 0

    def test_failed_update_leaves_store_untouched(self, dashboard, notifier):
        add_house(dashboard, "Keep")
        before = dashboard.houses.items
        with pytest.raises(BackendError):
            dashboard.update_house("missing-id", "Other")
        assert dashboard.houses.items == before
        assert notifier.messages[-1] == "Failed to update house"

    def test_search_and_stats(self, dashboard):
        add_house(dashboard, "Maple Cottage", "12 Main St")
        add_house(dashboard, "Lake House")
        assert [h.name for h in dashboard.search("main")] == ["Maple Cottage"]
        assert len(dashboard.search("")) == 2
        assert dashboard.stats().total_houses == 2


# ============================================================================
# House detail
# ============================================================================

class TestHouseDetail:
    def test_create_inspection(self, dashboard, session, notifier):
        house = add_house(dashboard)
        view = HouseDetailView(session, notifier, house.id)
        view.load()

        inspection = view.create_inspection("Roof", "2024-03-15", "")

        assert inspection.inspection_date == datetime(2024, 3, 15)
        assert inspection.notes is None
        assert inspection.image_count == 0
        assert view.inspections.items[0].id == inspection.id

    def test_counts_show_on_dashboard_reload(self, dashboard, session, notifier):
        house = add_house(dashboard)
        view = HouseDetailView(session, notifier, house.id)
        view.create_inspection("Roof", "2024-03-15")
        view.create_inspection("Plumbing", "2024-04-01")
        dashboard.load()
        assert dashboard.houses.get(house.id).inspection_count == 2

    def test_unknown_house(self, session, notifier):
        view = HouseDetailView(session, notifier, "nope")
        with pytest.raises(NotFoundError):
            view.load()
        assert notifier.messages[-1] == "House not found"

    def test_missing_title_rejected(self, dashboard, session, notifier):
        house = add_house(dashboard)
        view = HouseDetailView(session, notifier, house.id)
        with pytest.raises(FormValidationError):
            view.create_inspection("", "2024-03-15")
        assert notifier.messages[-1] == "Inspection title is required"

    def test_update_delete_and_defaults(self, dashboard, session, notifier):
        house = add_house(dashboard)
        view = HouseDetailView(session, notifier, house.id)
        inspection = view.create_inspection("Roof", "2024-03-15", "leak")

        assert view.form_defaults(inspection.id) == {
            "title": "Roof", "notes": "leak", "inspection_date": "2024-03-15",
        }
        view.update_inspection(inspection.id, "Roof again", "2024-03-16")
        assert view.inspections.get(inspection.id).title == "Roof again"
        assert view.inspections.get(inspection.id).inspection_date == datetime(2024, 3, 16)

        view.delete_inspection(inspection.id)
        assert len(view.inspections) == 0


# ============================================================================
# Inspection detail
# ============================================================================

class TestInspectionDetail:
    @pytest.fixture
    def detail(self, dashboard, session, notifier):
        house = add_house(dashboard)
        inspection = HouseDetailView(session, notifier, house.id).create_inspection("Roof", "2024-03-15")
        view = InspectionDetailView(session, notifier, house.id, inspection.id)
        view.uploader.clear_delay = 60
        view.load()
        return view

    def test_upload_appends_and_delete_removes(self, detail, notifier):
        result = detail.upload([LocalImage("front.png", PNG, "image/png")])
        detail.uploader.clear_timer.cancel()

        assert len(result.uploaded) == 1
        image = detail.images.items[0]
        assert image.path.startswith(f"inspections/{detail.inspection_id}/")
        assert image.url.endswith(image.path)
        assert "1 image(s) uploaded successfully" in notifier.messages

        detail.load()
        assert [i.path for i in detail.images] == [image.path]

        detail.delete_image(image.id)
        assert len(detail.images) == 0
        assert notifier.messages[-1] == "Image deleted successfully"

    def test_rejected_files_are_reported(self, detail, notifier):
        result = detail.upload([LocalImage("notes.txt", b"hello", "text/plain")])
        assert result.uploaded == []
        assert "notes.txt: Unsupported file type" in notifier.messages
        assert len(detail.images) == 0

    def test_inspection_of_another_house(self, dashboard, session, notifier, detail):
        other = add_house(dashboard, "Other")
        view = InspectionDetailView(session, notifier, other.id, detail.inspection_id)
        with pytest.raises(NotFoundError):
            view.load()
        assert notifier.messages[-1] == "Inspection not found"

    def test_unknown_image(self, detail):
        with pytest.raises(NotFoundError):
            detail.delete_image("nope.png")

    def test_update_inspection(self, detail):
        updated = detail.update_inspection("Roof v2", "2024-05-01", "done")
        assert detail.inspection.title == "Roof v2"
        assert updated.notes == "done"


def test_client_rejects_foreign_rows(storage):
    owner = DataAccessClient(base_url=BASE_URL, session=TestClient(app))
    SessionProvider(owner).sign_up("a@example.com", "secret123")
    other = DataAccessClient(base_url=BASE_URL, session=TestClient(app))
    SessionProvider(other).sign_up("b@example.com", "secret123")

    from housecheck.schemas import HouseCreate
    house = owner.insert_house(HouseCreate(name="Mine"))

    assert other.list_houses() == []
    with pytest.raises(BackendError) as exc:
        other.get_house(house.id)
    assert exc.value.status_code == 404
