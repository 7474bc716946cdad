from datetime import date, datetime, timezone

import pytest

from housecheck.portal.errors import FormValidationError
from housecheck.portal.forms import date_to_timestamp, house_form, inspection_defaults, inspection_form
from housecheck.schemas import HouseCreate, HouseUpdate, Inspection, InspectionUpdate


class TestHouseForm:
    def test_trims_name_and_address(self):
        payload = house_form(" Main St ", "  1 Elm Rd ")
        assert isinstance(payload, HouseCreate)
        assert payload.name == "Main St"
        assert payload.address == "1 Elm Rd"

    def test_blank_address_becomes_none(self):
        assert house_form("Main St", "   ").address is None

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_rejected(self, name):
        with pytest.raises(FormValidationError, match="House name is required"):
            house_form(name, "addr")

    def test_edit_mode_builds_update(self):
        assert isinstance(house_form("A", None, mode="edit"), HouseUpdate)


class TestInspectionForm:
    def test_date_becomes_midnight_utc_and_blank_notes_none(self):
        payload = inspection_form("Roof", "2024-03-15", "  ")
        assert payload.inspection_date == datetime(2024, 3, 15, tzinfo=timezone.utc)
        assert payload.notes is None

    def test_blank_title_rejected(self):
        with pytest.raises(FormValidationError, match="Inspection title is required"):
            inspection_form("  ", "2024-03-15")

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_missing_date_rejected(self, value):
        with pytest.raises(FormValidationError, match="Inspection date is required"):
            inspection_form("Roof", value)

    def test_malformed_date_rejected(self):
        with pytest.raises(FormValidationError):
            inspection_form("Roof", "15/03/2024")

    def test_edit_mode_builds_update(self):
        assert isinstance(inspection_form("Roof", date(2024, 1, 2), mode="edit"), InspectionUpdate)


def test_date_to_timestamp_drops_time_of_day():
    assert date_to_timestamp(datetime(2024, 3, 15, 18, 30)) == datetime(2024, 3, 15, tzinfo=timezone.utc)


def test_defaults_for_new_inspection_use_today():
    assert inspection_defaults(today=date(2024, 5, 1)) == {"title": "", "notes": "", "inspection_date": "2024-05-01"}


def test_defaults_for_existing_inspection():
    inspection = Inspection(
        id="i1", house_id="h1", user_id="u1", title="Roof", notes=None,
        inspection_date=datetime(2024, 3, 15), created_at=datetime(2024, 3, 1), updated_at=datetime(2024, 3, 1),
    )
    assert inspection_defaults(inspection) == {"title": "Roof", "notes": "", "inspection_date": "2024-03-15"}
