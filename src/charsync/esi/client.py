"""
ESI HTTP client for the character location and ship endpoints.

Remote failures are returned as values rather than raised: callers check
``result.failed`` and decide what to do. There is no retry here; the
request timeout is the only abort mechanism for a hung call.

Usage:
    client = EsiClient()
    result = client.get_location(character)
    if result.failed:
        logger.info("lookup failed", extra={"payload": result.to_dict()})
    else:
        print(result.data.solar_system_id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from charsync.config import settings
from charsync.esi.models import Location, Ship

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class EsiCharacter(Protocol):
    """Anything with a character id and an optional bearer token."""

    id: int
    esi_access_token: Optional[str]


@dataclass
class EsiResult(Generic[ModelT]):
    """Outcome of a single ESI call: parsed data, or the failure details."""

    data: Optional[ModelT] = None
    status_code: Optional[int] = None
    error: Any = None

    @property
    def failed(self) -> bool:
        return self.data is None or self.error is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data.model_dump() if self.data is not None else None,
            "status_code": self.status_code,
            "error": self.error,
        }


class EsiClient:
    """
    Thin ESI client over a requests.Session.

    Only the two authenticated character endpoints the location sync needs
    are exposed. The bearer token is taken from the character on each call.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        datasource: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.esi_base_url).rstrip("/")
        self.datasource = datasource or settings.esi_datasource
        self.timeout = timeout if timeout is not None else settings.esi_timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": user_agent or settings.esi_user_agent,
            "Accept": "application/json",
        })

    def get_location(self, character: EsiCharacter) -> EsiResult[Location]:
        """GET /characters/{character_id}/location/"""
        return self._get(f"/characters/{character.id}/location/", character, Location)

    def get_ship(self, character: EsiCharacter) -> EsiResult[Ship]:
        """GET /characters/{character_id}/ship/"""
        return self._get(f"/characters/{character.id}/ship/", character, Ship)

    def close(self) -> None:
        self._session.close()

    def _get(
        self,
        path: str,
        character: EsiCharacter,
        model: type[ModelT],
    ) -> EsiResult[ModelT]:
        headers = {}
        if character.esi_access_token:
            headers["Authorization"] = f"Bearer {character.esi_access_token}"

        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(
                url,
                params={"datasource": self.datasource},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.debug("ESI request to %s raised %s", url, exc)
            return EsiResult(error={"exception": type(exc).__name__, "message": str(exc)})

        if not response.ok:
            return EsiResult(status_code=response.status_code, error=_error_body(response))

        try:
            data = model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            return EsiResult(
                status_code=response.status_code,
                error={"exception": type(exc).__name__, "message": str(exc)},
            )

        return EsiResult(data=data, status_code=response.status_code)


def _error_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
