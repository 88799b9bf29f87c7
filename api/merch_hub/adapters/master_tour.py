# -*- coding: utf-8 -*-
"""
Master Tour (Eventric) API client - read-only tour, crew, event, guest list and set list data.

API docs: https://my.eventric.com/portal/apidocs
The remote API signs requests with OAuth 1.0; this client expects MASTER_TOUR_API_URL
to point at a proxy that adds the signature. Keys are forwarded as headers when set.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://my.eventric.com"


class MasterTourApiError(RuntimeError):
    """A Master Tour request failed or returned something unusable."""


@dataclass
class MasterTourConfig:
    base_url: str = DEFAULT_BASE_URL
    public_key: Optional[str] = None
    private_key: Optional[str] = None
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "MasterTourConfig":
        return cls(
            base_url=settings.MASTER_TOUR_API_URL or DEFAULT_BASE_URL,
            public_key=settings.MASTER_TOUR_PUBLIC_KEY,
            private_key=settings.MASTER_TOUR_PRIVATE_KEY,
            timeout=settings.MASTER_TOUR_TIMEOUT,
        )


def build_session(cfg: MasterTourConfig) -> requests.Session:
    s = requests.Session()
    s.headers.update({
        "Accept": "application/json",
        "Content-Type": "application/json",
    })
    if cfg.public_key:
        s.headers["X-MasterTour-Public-Key"] = cfg.public_key
    if cfg.private_key:
        s.headers["X-MasterTour-Private-Key"] = cfg.private_key
    return s


class MasterTourClient:
    def __init__(self, config: Optional[MasterTourConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or MasterTourConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.session = session or build_session(self.config)

    def _request(self, endpoint: str) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            resp = self.session.get(url, timeout=self.config.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Master Tour API error for {endpoint}: {e}")
            raise MasterTourApiError(f"API request failed: {e}") from e
        try:
            return resp.json()
        except ValueError as e:
            raise MasterTourApiError(f"Invalid JSON from {endpoint}") from e

    def _data(self, endpoint: str) -> Any:
        return self._request(endpoint).get("data")

    # ---------------------------------------------------------------------
    # Tours
    # ---------------------------------------------------------------------
    def get_tours(self) -> List[Dict[str, Any]]:
        return self._data("/api/v5/tours") or []

    def get_tour(self, tour_id: str) -> Optional[Dict[str, Any]]:
        """Tour including its dates."""
        return self._data(f"/api/v5/tour/{tour_id}")

    def get_tour_crew(self, tour_id: str) -> List[Dict[str, Any]]:
        return self._data(f"/api/v5/tour/{tour_id}/crew") or []

    # ---------------------------------------------------------------------
    # Days / events
    # ---------------------------------------------------------------------
    def get_day_events(self, day_id: str) -> List[Dict[str, Any]]:
        return self._data(f"/api/v5/day/{day_id}/events") or []

    def get_event_guest_list(self, event_id: str) -> List[Dict[str, Any]]:
        return self._data(f"/api/v5/event/{event_id}/guestlist") or []

    def get_event_set_list(self, event_id: str) -> List[Dict[str, Any]]:
        return self._data(f"/api/v5/event/{event_id}/setlist") or []

    def get_event_advancing_status(self, event_id: str) -> Dict[str, Any]:
        # no advancing endpoint in the v5 API
        logger.warning("get_event_advancing_status is not backed by the Master Tour API; returning pending placeholder")
        return {"event_id": event_id, "status": "pending", "items": []}
