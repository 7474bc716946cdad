"""
Data access client - the single handle the portal uses to reach the HouseCheck API.
Every call either returns typed rows or raises BackendError.
"""

import logging
import threading
from typing import Any, List, Optional
from urllib.parse import quote

import requests

from ..config import settings
from ..schemas import (
    AuthResponse,
    House,
    HouseCreate,
    HouseUpdate,
    HouseWithCount,
    Identity,
    ImageList,
    Inspection,
    InspectionCreate,
    InspectionUpdate,
    InspectionWithCount,
    PublicUrl,
    StoredObject,
    UploadedImage,
)
from .errors import BackendError

logger = logging.getLogger(__name__)


class DataAccessClient:
    """Client for the HouseCheck backend API"""

    def __init__(self, base_url: str = None, session=None, bucket: str = None, timeout: float = None):
        """
        Initialize API client

        Args:
            base_url: Backend API URL (defaults to settings.API_URL)
            session: requests.Session-compatible object shared by every thread
                (a TestClient works too); by default each thread opens its own
                requests.Session
            bucket: Storage bucket for inspection images
            timeout: Per-request timeout in seconds
        """
        self.base_url = (base_url or settings.API_URL).rstrip('/')
        self.headers = {}
        self._shared_session = session
        self._local = threading.local()
        self.bucket = bucket or settings.IMAGE_BUCKET
        self.timeout = timeout or settings.REQUEST_TIMEOUT

    # ---------- Plumbing ----------

    @property
    def session(self):
        """The injected session, or this thread's own requests.Session."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def set_token(self, token: Optional[str]) -> None:
        if token:
            self.headers['Authorization'] = f'Bearer {token}'
        else:
            self.headers.pop('Authorization', None)

    @property
    def has_token(self) -> bool:
        return 'Authorization' in self.headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f'{self.base_url}{path}'
        try:
            response = self.session.request(method, url, headers=dict(self.headers), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise BackendError(str(e)) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get('detail', response.text)
            except ValueError:
                detail = response.text
            logger.debug(f"{method} {path} -> {response.status_code}: {detail}")
            raise BackendError(str(detail), status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _storage_path(self, action: str, path: str) -> str:
        return f'/api/storage/{self.bucket}/{action}/{quote(path)}'

    # ---------- Identity ----------

    def sign_up(self, email: str, password: str) -> AuthResponse:
        data = self._request('POST', '/api/auth/signup', json={'email': email, 'password': password})
        return AuthResponse.model_validate(data)

    def sign_in(self, email: str, password: str) -> AuthResponse:
        data = self._request('POST', '/api/auth/signin', json={'email': email, 'password': password})
        return AuthResponse.model_validate(data)

    def sign_out(self) -> None:
        self._request('POST', '/api/auth/signout')

    def get_user(self) -> Optional[Identity]:
        """Current identity, or None when the token is missing or rejected."""
        if not self.has_token:
            return None
        try:
            return Identity.model_validate(self._request('GET', '/api/auth/user'))
        except BackendError as e:
            if e.status_code == 401:
                return None
            raise

    # ---------- Houses ----------

    def list_houses(self) -> List[HouseWithCount]:
        return [HouseWithCount.model_validate(row) for row in self._request('GET', '/api/houses')]

    def get_house(self, house_id: str) -> House:
        return House.model_validate(self._request('GET', f'/api/houses/{house_id}'))

    def insert_house(self, payload: HouseCreate) -> House:
        return House.model_validate(self._request('POST', '/api/houses', json=payload.model_dump()))

    def update_house(self, house_id: str, payload: HouseUpdate) -> House:
        data = self._request('PATCH', f'/api/houses/{house_id}', json=payload.model_dump(exclude_unset=True))
        return House.model_validate(data)

    def delete_house(self, house_id: str) -> None:
        self._request('DELETE', f'/api/houses/{house_id}')

    # ---------- Inspections ----------

    def list_inspections(self, house_id: str) -> List[InspectionWithCount]:
        rows = self._request('GET', f'/api/houses/{house_id}/inspections')
        return [InspectionWithCount.model_validate(row) for row in rows]

    def get_inspection(self, house_id: str, inspection_id: str) -> Inspection:
        data = self._request('GET', f'/api/inspections/{inspection_id}', params={'house_id': house_id})
        return Inspection.model_validate(data)

    def insert_inspection(self, house_id: str, payload: InspectionCreate) -> Inspection:
        data = self._request('POST', f'/api/houses/{house_id}/inspections', json=payload.model_dump(mode='json'))
        return Inspection.model_validate(data)

    def update_inspection(self, inspection_id: str, payload: InspectionUpdate) -> Inspection:
        data = self._request(
            'PATCH',
            f'/api/inspections/{inspection_id}',
            json=payload.model_dump(mode='json', exclude_unset=True),
        )
        return Inspection.model_validate(data)

    def delete_inspection(self, inspection_id: str) -> None:
        self._request('DELETE', f'/api/inspections/{inspection_id}')

    # ---------- Storage ----------

    def upload_object(self, path: str, content: bytes, filename: str, content_type: str) -> StoredObject:
        files = {'file': (filename, content, content_type)}
        return StoredObject.model_validate(self._request('POST', self._storage_path('object', path), files=files))

    def get_public_url(self, path: str) -> str:
        return PublicUrl.model_validate(self._request('GET', self._storage_path('public-url', path))).url

    def list_objects(self, prefix: str) -> List[UploadedImage]:
        data = self._request('GET', f'/api/storage/{self.bucket}/list', params={'prefix': prefix})
        return ImageList.model_validate(data).items

    def delete_object(self, path: str) -> None:
        self._request('DELETE', self._storage_path('object', path))

    def __repr__(self) -> str:
        return f'DataAccessClient({self.base_url!r})'

