"""Tests for the Supabase REST client using mocked HTTP responses."""

import json
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests
import responses

from src.supabase_client import AuthenticationError, PermissionError_, SupabaseClient


BASE_URL = "https://test-project.supabase.co"
REST_BASE = f"{BASE_URL}/rest/v1"
POST_UUID = "3f2504e0-4f89-11d3-9a0c-0305e82c3301"


@pytest.fixture
def client():
    return SupabaseClient(base_url=BASE_URL, api_key="test-key", retries=3)


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip the retry backoff waits."""
    with patch("src.supabase_client.time.sleep"):
        yield


def query_of(call) -> dict:
    return {key: values[0] for key, values in parse_qs(urlparse(call.request.url).query).items()}


class TestConfiguration:
    def test_missing_settings_raise(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        with pytest.raises(ValueError):
            SupabaseClient()

    def test_env_settings(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", BASE_URL + "/")
        monkeypatch.setenv("SUPABASE_KEY", "env-key")
        client = SupabaseClient()
        assert client.rest_base == REST_BASE
        assert client.headers["apikey"] == "env-key"
        assert client.headers["Authorization"] == "Bearer env-key"

    def test_from_config(self):
        client = SupabaseClient.from_config({
            "supabase": {"url": BASE_URL, "key": "cfg-key", "timeout": 5, "retries": 1},
        })
        assert client.timeout == 5
        assert client.retries == 1


class TestUsers:
    @responses.activate
    def test_get_user_by_subdomain(self, client):
        responses.add(responses.GET, f"{REST_BASE}/users",
                      json=[{"id": "u1", "name": "Jane", "subdomain": "jane"}], status=200)
        user = client.get_user_by_subdomain("jane")
        assert user["id"] == "u1"
        params = query_of(responses.calls[0])
        assert params["subdomain"] == "eq.jane"
        assert params["limit"] == "1"

    @responses.activate
    def test_unknown_subdomain(self, client):
        responses.add(responses.GET, f"{REST_BASE}/users", json=[], status=200)
        assert client.get_user_by_subdomain("nobody") is None


class TestPosts:
    @responses.activate
    def test_published_posts_query(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json=[{"id": "p1"}, {"id": "p2"}], status=200)
        posts = client.get_published_posts("u1")
        assert [post["id"] for post in posts] == ["p1", "p2"]
        params = query_of(responses.calls[0])
        assert params["user_id"] == "eq.u1"
        assert params["status"] == "eq.published"
        assert params["is_draft"] == "eq.false"
        assert params["order"] == "created_at.desc"

    @responses.activate
    def test_public_post_by_slug(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json=[{"id": "p1"}], status=200)
        assert client.get_public_post("u1", "my-post") == {"id": "p1"}
        params = query_of(responses.calls[0])
        assert params["post_slug"] == "eq.my-post"
        assert "id" not in params

    @responses.activate
    def test_public_post_by_uuid(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json=[], status=200)
        assert client.get_public_post("u1", POST_UUID) is None
        params = query_of(responses.calls[0])
        assert params["id"] == f"eq.{POST_UUID}"
        assert "post_slug" not in params

    @responses.activate
    def test_legacy_posts_query(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json=[{"id": "p1"}], status=200)
        client.get_legacy_posts(limit=10, offset=20)
        params = query_of(responses.calls[0])
        assert params["template_data"] == "is.null"
        assert params["order"] == "created_at.asc"
        assert params["limit"] == "10"
        assert params["offset"] == "20"

    @responses.activate
    def test_not_found_table_returns_empty(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json={"message": "not found"}, status=404)
        assert client.get_published_posts("u1") == []

    @responses.activate
    def test_update_post(self, client):
        responses.add(responses.PATCH, f"{REST_BASE}/posts",
                      json=[{"id": "p1", "template_data": {"title": "Hi"}}], status=200)
        row = client.update_post("p1", {"template_data": {"title": "Hi"}})
        assert row["template_data"] == {"title": "Hi"}

        request = responses.calls[0].request
        assert query_of(responses.calls[0])["id"] == "eq.p1"
        assert request.headers["Prefer"] == "return=representation"
        assert request.headers["apikey"] == "test-key"
        assert json.loads(request.body) == {"template_data": {"title": "Hi"}}

    @responses.activate
    def test_update_post_empty_representation(self, client):
        responses.add(responses.PATCH, f"{REST_BASE}/posts", json=[], status=200)
        assert client.update_post("p1", {"template_data": {}}) == {}


class TestErrorHandling:
    @responses.activate
    def test_auth_error(self, client):
        responses.add(responses.GET, f"{REST_BASE}/users", json={"message": "bad jwt"}, status=401)
        with pytest.raises(AuthenticationError):
            client.get_user_by_subdomain("jane")
        assert len(responses.calls) == 1

    @responses.activate
    def test_permission_error(self, client):
        responses.add(responses.PATCH, f"{REST_BASE}/posts", json={"message": "rls"}, status=403)
        with pytest.raises(PermissionError_):
            client.update_post("p1", {"template_data": {}})

    @responses.activate
    def test_server_error_retries_then_raises(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json={"message": "boom"}, status=503)
        with pytest.raises(Exception, match="Server error 503"):
            client.get_published_posts("u1")
        assert len(responses.calls) == 3

    @responses.activate
    def test_recovers_after_rate_limit(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json={"message": "slow down"}, status=429)
        responses.add(responses.GET, f"{REST_BASE}/posts", json=[{"id": "p1"}], status=200)
        assert client.get_published_posts("u1") == [{"id": "p1"}]
        assert len(responses.calls) == 2

    @responses.activate
    def test_timeout_retries_then_raises(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", body=requests.exceptions.Timeout("slow"))
        with pytest.raises(requests.exceptions.Timeout):
            client.get_published_posts("u1")
        assert len(responses.calls) == 3

    @responses.activate
    def test_client_error_raises(self, client):
        responses.add(responses.GET, f"{REST_BASE}/posts", json={"message": "bad filter"}, status=400)
        with pytest.raises(requests.exceptions.HTTPError):
            client.get_published_posts("u1")
