#!/usr/bin/env python3
"""
commerce_client.py
Central REST helper for the Commerce admin API.
Reads COMMERCE_BASE_URL and admin credentials from .env
and exposes a `CommerceClient` class with `get` / `post`.
"""

from __future__ import annotations
import json
import logging
import time
from typing import Optional

import requests

from datapack_sync.config import (
    ADMIN_TOKEN_PATH,
    API_VERSION,
    CommerceConfig,
    load_commerce_config,
)

logger = logging.getLogger(__name__)

TOKEN_LIFETIME_SECONDS = 4 * 60 * 60


class CommerceAPIError(RuntimeError):
    """Non-2xx response, unparseable body, or transport failure."""

    def __init__(self, message: str, status: Optional[int] = None, data=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data


def flatten_query(params: dict, prefix: str = "") -> list:
    """
    Flattens nested dicts/lists into Commerce bracket notation, e.g.
    {"searchCriteria": {"filterGroups": [{"filters": [{"field": "name"}]}]}}
    -> [("searchCriteria[filterGroups][0][filters][0][field]", "name")]
    """
    pairs = []
    if isinstance(params, dict):
        items = params.items()
    else:
        items = enumerate(params)

    for key, value in items:
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, (dict, list, tuple)):
            pairs.extend(flatten_query(value, name))
        elif isinstance(value, bool):
            pairs.append((name, "1" if value else "0"))
        elif value is not None:
            pairs.append((name, str(value)))
    return pairs


class CommerceClient:
    def __init__(self, config: CommerceConfig | None = None, session: requests.Session | None = None):
        self.config = config or load_commerce_config()
        self.base_url = self.config.base_url.rstrip("/")
        self.dry_run = self.config.dry_run
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0

    # ------------------------------------------------------------------
    def build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        if not path.startswith("/rest/"):
            path = f"/rest/{API_VERSION}{path}"
        return f"{self.base_url}{path}"

    # ------------------------------------------------------------------
    def get(self, path: str, query: dict | None = None):
        return self.request("GET", path, query=query)

    def post(self, path: str, body: dict):
        return self.request("POST", path, body=body)

    def request(self, method: str, path: str, query: dict | None = None, body: dict | None = None):
        """Perform one REST call and return the parsed JSON body (None when empty)."""
        url = self.build_url(path)

        if self.dry_run and method != "GET":
            logger.info(f"[DRY RUN] {method} {url}")
            if body is not None:
                logger.debug("Request body: %s", body)
            return {"dry_run": True, "method": method, "url": url, "body": body}

        logger.debug(f"{method} {url}")
        headers = {"Authorization": f"Bearer {self.admin_token()}"}
        try:
            resp = self.session.request(
                method,
                url,
                params=flatten_query(query) if query else None,
                json=body,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise CommerceAPIError(f"API request failed: {e}") from e

        if not resp.ok:
            try:
                data = resp.json()
            except ValueError:
                data = {"message": resp.text}
            logger.debug("Error details: %s", data)
            message = (data.get("message") if isinstance(data, dict) else None) or resp.text or f"HTTP {resp.status_code}"
            raise CommerceAPIError(message, status=resp.status_code, data=data)

        text = resp.text
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            # Locked-down admin endpoints answer with the storefront HTML page
            raise CommerceAPIError(f"Invalid response from {url}: {text[:200]}", status=resp.status_code)

    # ------------------------------------------------------------------
    def admin_token(self) -> str:
        """Configured token, else a cached one, else a freshly generated one."""
        if self.config.admin_token:
            return self.config.admin_token
        if self._token and time.time() < self._token_expires_at:
            return self._token
        return self.generate_admin_token()

    def generate_admin_token(self) -> str:
        username, password = self.config.admin_username, self.config.admin_password
        if not username or not password:
            raise EnvironmentError(
                "Commerce admin credentials not provided. "
                "Set COMMERCE_ADMIN_USERNAME and COMMERCE_ADMIN_PASSWORD in .env"
            )

        token_url = f"{self.base_url}/rest/{API_VERSION}{ADMIN_TOKEN_PATH}"
        logger.debug(f"Generating Commerce admin token via {token_url}")
        try:
            resp = self.session.post(
                token_url,
                json={"username": username, "password": password},
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise CommerceAPIError(f"Token request failed: {e}") from e
        if not resp.ok:
            raise CommerceAPIError(
                f"Token request failed: {resp.status_code} {resp.reason} - {resp.text}",
                status=resp.status_code,
            )

        try:
            token = resp.json()
        except ValueError:
            raise CommerceAPIError(f"Invalid response from {token_url}: {resp.text[:200]}", status=resp.status_code)
        # Commerce returns the token as a quoted JSON string
        self._token = token.replace('"', "") if isinstance(token, str) else token
        self._token_expires_at = time.time() + TOKEN_LIFETIME_SECONDS
        logger.debug("Admin token generated successfully")
        return self._token
