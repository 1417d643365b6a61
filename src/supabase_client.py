"""Supabase REST (PostgREST) client for the users and posts tables."""

import logging
import os
import time

import requests
from dotenv import load_dotenv

from src.post_reader import looks_like_uuid

load_dotenv(override=True)

log = logging.getLogger(__name__)

# Custom exceptions
class AuthenticationError(Exception):
    pass

class PermissionError_(Exception):
    pass


class SupabaseClient:
    """Reads and updates rows through the hosted Postgres REST endpoint."""

    def __init__(self, base_url=None, api_key=None, timeout=30, retries=3):
        self.base_url = (base_url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_KEY", "")
        self.rest_base = f"{self.base_url}/rest/v1"
        self.timeout = timeout
        self.retries = retries

        if not self.base_url or not self.api_key:
            raise ValueError("Missing Supabase settings: set SUPABASE_URL and SUPABASE_KEY")

        self.headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @classmethod
    def from_config(cls, config: dict) -> "SupabaseClient":
        supabase_cfg = config.get("supabase", {})
        return cls(
            base_url=supabase_cfg.get("url"),
            api_key=supabase_cfg.get("key"),
            timeout=supabase_cfg.get("timeout", 30),
            retries=supabase_cfg.get("retries", 3),
        )

    def _request(self, method, url, extra_headers=None, **kwargs):
        """Make an HTTP request with retry logic and error handling."""
        headers = {**self.headers, **(extra_headers or {})}
        last_exception = None
        for attempt in range(self.retries):
            try:
                start = time.time()
                resp = requests.request(
                    method, url, headers=headers, timeout=self.timeout, **kwargs
                )
                elapsed = time.time() - start

                log.info(
                    f"{method} {url} -> {resp.status_code}",
                    extra={
                        "endpoint": url,
                        "method": method,
                        "status_code": resp.status_code,
                        "response_time": round(elapsed, 3),
                    },
                )

                if resp.status_code == 401:
                    raise AuthenticationError(f"Authentication failed: {resp.text}")
                if resp.status_code == 403:
                    raise PermissionError_(f"Insufficient permissions: {resp.text}")
                if resp.status_code == 404:
                    log.warning(f"Not found: {url}")
                    return resp
                if resp.status_code == 429:
                    wait = 2 ** attempt
                    log.warning(f"Rate limited, waiting {wait}s")
                    time.sleep(wait)
                    last_exception = Exception(f"Rate limited: {url}")
                    continue
                if resp.status_code >= 500:
                    wait = 2 ** attempt
                    log.warning(f"Server error {resp.status_code}, retry {attempt+1}/{self.retries}")
                    time.sleep(wait)
                    last_exception = Exception(f"Server error {resp.status_code}: {resp.text}")
                    continue

                return resp

            except requests.exceptions.Timeout:
                wait = 2 ** attempt
                log.warning(f"Timeout on {url}, retry {attempt+1}/{self.retries}")
                time.sleep(wait)
                last_exception = requests.exceptions.Timeout(f"Timeout: {url}")
            except (AuthenticationError, PermissionError_):
                raise
            except requests.exceptions.ConnectionError as e:
                wait = 2 ** attempt
                log.warning(f"Connection error, retry {attempt+1}/{self.retries}")
                time.sleep(wait)
                last_exception = e

        raise last_exception or Exception(f"Request failed after {self.retries} retries")

    def _select(self, table: str, params: dict) -> list[dict]:
        resp = self._request("GET", f"{self.rest_base}/{table}", params=params)
        if resp.status_code == 404:
            return []
        resp.raise_for_status()
        return resp.json() or []

    def get_user_by_subdomain(self, subdomain: str) -> dict | None:
        """Look up the tenant that owns a subdomain."""
        rows = self._select("users", {
            "select": "*",
            "subdomain": f"eq.{subdomain}",
            "limit": 1,
        })
        return rows[0] if rows else None

    def get_published_posts(self, user_id: str) -> list[dict]:
        """All published, non-draft posts for a user, newest first."""
        return self._select("posts", {
            "select": "*",
            "user_id": f"eq.{user_id}",
            "status": "eq.published",
            "is_draft": "eq.false",
            "order": "created_at.desc",
        })

    def get_public_post(self, user_id: str, slug_or_id: str) -> dict | None:
        """Fetch one published post by UUID or by its post_slug."""
        column = "id" if looks_like_uuid(slug_or_id) else "post_slug"
        rows = self._select("posts", {
            "select": "*",
            "user_id": f"eq.{user_id}",
            "status": "eq.published",
            "is_draft": "eq.false",
            column: f"eq.{slug_or_id}",
            "limit": 1,
        })
        return rows[0] if rows else None

    def get_legacy_posts(self, limit: int = 50, offset: int = 0) -> list[dict]:
        """Posts with no structured template data, oldest first."""
        return self._select("posts", {
            "select": "id,title,content,created_at,template_data",
            "template_data": "is.null",
            "order": "created_at.asc",
            "limit": limit,
            "offset": offset,
        })

    def update_post(self, post_id: str, fields: dict) -> dict:
        """Patch a post row and return the updated row."""
        resp = self._request(
            "PATCH",
            f"{self.rest_base}/posts",
            params={"id": f"eq.{post_id}"},
            json=fields,
            extra_headers={"Prefer": "return=representation"},
        )
        resp.raise_for_status()
        rows = resp.json() or []
        log.info(f"Updated post {post_id}: {', '.join(sorted(fields))}", extra={"post_id": post_id})
        return rows[0] if rows else {}
