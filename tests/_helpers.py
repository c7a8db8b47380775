import json
from pathlib import Path
from typing import Any

from datapack_sync.api.commerce_client import CommerceAPIError


class FakeCommerceClient:
    """
    Stands in for CommerceClient. `routes` maps (method, path) to either a
    response value, an exception instance to raise, or a callable(query_or_body).
    """

    def __init__(self, routes: dict | None = None, dry_run: bool = False) -> None:
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, Any]] = []
        self.dry_run = dry_run

    def _dispatch(self, method: str, path: str, payload: Any) -> Any:
        self.calls.append((method, path, payload))
        key = (method, path)
        if key not in self.routes:
            raise CommerceAPIError(f"No route for {method} {path}", status=404)
        handler = self.routes[key]
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(payload)
        return handler

    def get(self, path: str, query: dict | None = None) -> Any:
        return self._dispatch("GET", path, query)

    def post(self, path: str, body: dict) -> Any:
        return self._dispatch("POST", path, body)

    def posts(self) -> list:
        return [call for call in self.calls if call[0] == "POST"]


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
