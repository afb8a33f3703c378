"""
Record store gateway (PostgREST dialect).

Equality filters travel as `column=eq.value` query params, ordering as
`order=column.desc`, ranges as `limit`/`offset`. Single-row reads and writes
ask for the object representation, which makes the store answer
PGRST116 when zero rows match; `select_one` maps exactly that answer to None.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from companion_api.platform.errors import NO_ROWS_CODE, PlatformError

if TYPE_CHECKING:
    from companion_api.platform.session import PlatformSession

logger = logging.getLogger(__name__)

OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _equality_filters(eq: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    if not eq:
        return []
    return [(column, f"eq.{_literal(value)}") for column, value in eq.items()]


class RecordStore:
    """Table reads/writes and RPC calls, under the owning session's credential."""

    def __init__(self, session: "PlatformSession"):
        self._session = session

    @staticmethod
    def _path(table: str) -> str:
        return f"/rest/v1/{table}"

    async def select_one(
        self,
        table: str,
        *,
        eq: Mapping[str, Any],
        columns: str = "*",
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch exactly one row.

        Returns:
            The row, or None when the store answers with its no-rows code.
            The store uses that code for zero rows and for several rows
            alike, so callers filter on a unique column.
        Raises:
            PlatformError for every other failure.
        """
        params = [("select", columns)] + _equality_filters(eq)
        try:
            response = await self._session.request(
                "GET", self._path(table), params=params, headers={"Accept": OBJECT_ACCEPT}
            )
        except PlatformError as exc:
            if exc.code == NO_ROWS_CODE:
                return None
            raise
        return response.json()

    async def select_many(
        self,
        table: str,
        *,
        eq: Optional[Mapping[str, Any]] = None,
        columns: str = "*",
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = [("select", columns)] + _equality_filters(eq)
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        if offset:
            params.append(("offset", str(offset)))

        response = await self._session.request("GET", self._path(table), params=params)
        return response.json() or []

    async def insert_one(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored."""
        response = await self._session.request(
            "POST",
            self._path(table),
            params=[("select", "*")],
            json=[dict(row)],
            headers={"Prefer": "return=representation", "Accept": OBJECT_ACCEPT},
        )
        return response.json()

    async def update_one(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        eq: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """
        Update the single matching row and return it.

        Zero matching rows is a PlatformError (code PGRST116), not None:
        an update that touched nothing is a failed update.
        """
        params = [("select", "*")] + _equality_filters(eq)
        response = await self._session.request(
            "PATCH",
            self._path(table),
            params=params,
            json=dict(values),
            headers={"Prefer": "return=representation", "Accept": OBJECT_ACCEPT},
        )
        return response.json()

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        eq: Mapping[str, Any],
    ) -> None:
        await self._session.request(
            "PATCH",
            self._path(table),
            params=_equality_filters(eq),
            json=dict(values),
            headers={"Prefer": "return=minimal"},
        )

    async def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        on_conflict: str,
    ) -> None:
        """Insert-or-replace keyed by the unique column `on_conflict`."""
        await self._session.request(
            "POST",
            self._path(table),
            params=[("on_conflict", on_conflict)],
            json=[dict(row)],
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def delete(self, table: str, *, eq: Mapping[str, Any]) -> None:
        if not eq:
            # Unfiltered deletes are refused by the store anyway
            raise ValueError("delete() requires at least one equality filter")
        await self._session.request(
            "DELETE",
            self._path(table),
            params=_equality_filters(eq),
            headers={"Prefer": "return=minimal"},
        )

    async def rpc(self, function: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Call a stored procedure; returns its decoded JSON result (or None)."""
        response = await self._session.request(
            "POST",
            f"/rest/v1/rpc/{function}",
            json=dict(params or {}),
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
