"""
Page controllers. Each view owns the stores it fetched, gates every operation
on the shared SessionProvider and patches its stores only after the backend
accepted a change. Failures are turned into notifications at the operation
boundary and re-raised as PortalError subclasses for the caller.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional, Sequence, TypeVar

from ..schemas import (
    House,
    HouseWithCount,
    Identity,
    Inspection,
    InspectionWithCount,
    UploadedImage,
)
from ..paths import inspection_prefix
from . import forms, stats
from .errors import AuthenticationError, BackendError, FormValidationError, NotFoundError
from .notifications import Notifier
from .search import HOUSE_SEARCH_FIELDS, INSPECTION_SEARCH_FIELDS, filter_items
from .session import SessionProvider
from .store import EntityStore
from .uploader import BatchImageUploader, BatchResult, LocalImage, select_images

logger = logging.getLogger(__name__)

R = TypeVar("R")


class BaseView:
    def __init__(self, session: SessionProvider, notifier: Notifier):
        self.session = session
        self.client = session.client
        self.notifier = notifier
        self.identity: Optional[Identity] = None

    def _authenticate(self) -> Identity:
        self.identity = self.session.require_identity()
        return self.identity

    def _validated(self, build: Callable[[], R]) -> R:
        try:
            return build()
        except FormValidationError as e:
            self.notifier.error(str(e))
            raise

    def _session_lost(self) -> AuthenticationError:
        """A 401 after sign-in: the token expired or was revoked."""
        self.session.expire()
        self.identity = None
        self.notifier.error("Your session has expired. Please sign in again")
        return AuthenticationError("Please sign in to continue")

    def _call(self, failure_message: str, call: Callable[[], R]) -> R:
        try:
            return call()
        except BackendError as e:
            if e.status_code == 401:
                raise self._session_lost() from e
            logger.error(f"{failure_message}: {e}")
            self.notifier.error(failure_message)
            raise

    def _fetch_parent(self, not_found_message: str, call: Callable[[], R]) -> R:
        """Load a parent row; a 404 means missing or not ours."""
        try:
            return call()
        except BackendError as e:
            if e.status_code == 401:
                raise self._session_lost() from e
            self.notifier.error(not_found_message)
            if e.status_code == 404:
                raise NotFoundError(not_found_message) from e
            raise


# ---------- Dashboard (houses) ----------

class DashboardView(BaseView):
    def __init__(self, session: SessionProvider, notifier: Notifier):
        super().__init__(session, notifier)
        self.houses: EntityStore[HouseWithCount] = EntityStore()
        self.search_query = ""

    def load(self) -> List[HouseWithCount]:
        self._authenticate()
        self.houses.load(self._call("Failed to load houses", self.client.list_houses))
        return self.houses.items

    def search(self, query: str) -> List[HouseWithCount]:
        self.search_query = query
        return self.visible()

    def visible(self) -> List[HouseWithCount]:
        return filter_items(self.houses, self.search_query, HOUSE_SEARCH_FIELDS)

    def create_house(self, name: str, address: Optional[str] = None) -> HouseWithCount:
        self._authenticate()
        payload = self._validated(lambda: forms.house_form(name, address))
        house = self._call("Failed to create house", lambda: self.client.insert_house(payload))
        entry = self.houses.prepend(HouseWithCount(**house.model_dump(), inspection_count=0))
        self.notifier.success("House created successfully")
        return entry

    def update_house(self, house_id: str, name: str, address: Optional[str] = None) -> House:
        self._authenticate()
        payload = self._validated(lambda: forms.house_form(name, address, mode="edit"))
        house = self._call("Failed to update house", lambda: self.client.update_house(house_id, payload))
        self.houses.replace(house)
        self.notifier.success("House updated successfully")
        return house

    def delete_house(self, house_id: str) -> None:
        self._authenticate()
        # inspections and their images are removed by the backend
        self._call("Failed to delete house", lambda: self.client.delete_house(house_id))
        self.houses.remove(house_id)
        self.notifier.success("House deleted successfully")

    def stats(self, now=None) -> stats.DashboardStats:
        return stats.dashboard_stats(self.houses.items, now)


# ---------- House detail (inspections) ----------

class HouseDetailView(BaseView):
    def __init__(self, session: SessionProvider, notifier: Notifier, house_id: str):
        super().__init__(session, notifier)
        self.house_id = house_id
        self.house: Optional[House] = None
        self.inspections: EntityStore[InspectionWithCount] = EntityStore()
        self.search_query = ""

    def load(self) -> House:
        self._authenticate()
        self.house = self._fetch_parent("House not found", lambda: self.client.get_house(self.house_id))
        self.inspections.load(
            self._call("Error loading inspections", lambda: self.client.list_inspections(self.house_id))
        )
        return self.house

    def search(self, query: str) -> List[InspectionWithCount]:
        self.search_query = query
        return self.visible()

    def visible(self) -> List[InspectionWithCount]:
        return filter_items(self.inspections, self.search_query, INSPECTION_SEARCH_FIELDS)

    def recent(self) -> List[InspectionWithCount]:
        return stats.recent(self.inspections.items)

    def create_inspection(
        self,
        title: str,
        inspection_date: forms.DateInput,
        notes: Optional[str] = None,
    ) -> InspectionWithCount:
        self._authenticate()
        payload = self._validated(lambda: forms.inspection_form(title, inspection_date, notes))
        inspection = self._call(
            "Failed to create inspection",
            lambda: self.client.insert_inspection(self.house_id, payload),
        )
        entry = self.inspections.prepend(InspectionWithCount(**inspection.model_dump(), image_count=0))
        self.notifier.success("Inspection created successfully")
        return entry

    def update_inspection(
        self,
        inspection_id: str,
        title: str,
        inspection_date: forms.DateInput,
        notes: Optional[str] = None,
    ) -> Inspection:
        self._authenticate()
        payload = self._validated(lambda: forms.inspection_form(title, inspection_date, notes, mode="edit"))
        inspection = self._call(
            "Failed to update inspection",
            lambda: self.client.update_inspection(inspection_id, payload),
        )
        self.inspections.replace(inspection)
        self.notifier.success("Inspection updated successfully")
        return inspection

    def delete_inspection(self, inspection_id: str) -> None:
        self._authenticate()
        self._call("Failed to delete inspection", lambda: self.client.delete_inspection(inspection_id))
        self.inspections.remove(inspection_id)
        self.notifier.success("Inspection deleted successfully")

    def form_defaults(self, inspection_id: Optional[str] = None, today: Optional[date] = None) -> dict:
        inspection = self.inspections.get(inspection_id) if inspection_id else None
        return forms.inspection_defaults(inspection, today)

    def stats(self, now=None) -> stats.InspectionStats:
        return stats.inspection_stats(self.inspections.items, now)


# ---------- Inspection detail (images) ----------

class InspectionDetailView(BaseView):
    def __init__(self, session: SessionProvider, notifier: Notifier, house_id: str, inspection_id: str,
                 uploader: Optional[BatchImageUploader] = None):
        super().__init__(session, notifier)
        self.house_id = house_id
        self.inspection_id = inspection_id
        self.house: Optional[House] = None
        self.inspection: Optional[Inspection] = None
        self.images: EntityStore[UploadedImage] = EntityStore()
        self.uploader = uploader or BatchImageUploader(self.client, inspection_id, notifier)

    def load(self) -> Inspection:
        self._authenticate()
        self.house = self._fetch_parent("House not found", lambda: self.client.get_house(self.house_id))
        self.inspection = self._fetch_parent(
            "Inspection not found",
            lambda: self.client.get_inspection(self.house_id, self.inspection_id),
        )
        self.images.load(self._call(
            "Error loading images",
            lambda: self.client.list_objects(inspection_prefix(self.inspection_id)),
        ))
        return self.inspection

    def update_inspection(self, title: str, inspection_date: forms.DateInput, notes: Optional[str] = None) -> Inspection:
        self._authenticate()
        payload = self._validated(lambda: forms.inspection_form(title, inspection_date, notes, mode="edit"))
        self.inspection = self._call(
            "Failed to update inspection",
            lambda: self.client.update_inspection(self.inspection_id, payload),
        )
        self.notifier.success("Inspection updated successfully")
        return self.inspection

    def upload(self, files: Sequence[LocalImage]) -> BatchResult:
        """Reject what the picker would refuse, then upload the rest as one batch."""
        self._authenticate()
        accepted, rejected = select_images(files)
        for rejection in rejected:
            self.notifier.error(f"{rejection.name}: {rejection.reason}")
        return self.uploader.upload(accepted, on_uploaded=self.images.append)

    def delete_image(self, image_id: str) -> None:
        self._authenticate()
        image = self.images.get(image_id)
        if image is None:
            raise NotFoundError("Image not found")
        self._call("Failed to delete image", lambda: self.client.delete_object(image.path))
        self.images.remove(image_id)
        self.notifier.success("Image deleted successfully")
