"""Tests for tenant subdomain routing."""

import pytest

from src.tenant_routing import TenantRouter


@pytest.fixture
def router():
    return TenantRouter()


class TestResolve:
    @pytest.mark.parametrize("host, expected", [
        ("jane.bloggish.io", "jane"),
        ("Jane.Bloggish.IO", "jane"),
        ("jane.bloggish.io:3000", "jane"),
        ("www.bloggish.io", None),
        ("bloggish.bloggish.io", None),
        ("bloggish.io", None),
        (".bloggish.io", None),
        ("jane.example.com", None),
        ("janebloggish.io", None),
        ("", None),
        (None, None),
    ])
    def test_resolve(self, router, host, expected):
        assert router.resolve(host) == expected

    def test_from_config(self):
        router = TenantRouter.from_config({
            "tenant": {"root_domain": "blogs.test", "reserved_subdomains": ["admin"]},
        })
        assert router.resolve("admin.blogs.test") is None
        assert router.resolve("www.blogs.test") == "www"
        assert router.resolve("jane.blogs.test") == "jane"


class TestRewrite:
    def test_tenant_path(self, router):
        assert router.rewrite_path("jane.bloggish.io", "/my-post") == "/blog/jane/my-post"

    def test_tenant_root(self, router):
        assert router.rewrite_path("jane.bloggish.io", "/") == "/blog/jane/"

    def test_non_tenant_unchanged(self, router):
        assert router.rewrite_path("bloggish.io", "/pricing") == "/pricing"
        assert router.rewrite_path("www.bloggish.io", "/pricing") == "/pricing"

    @pytest.mark.parametrize("path", ["/_next/static/app.js", "/favicon.ico"])
    def test_asset_paths_pass_through(self, router, path):
        assert router.rewrite_path("jane.bloggish.io", path) == path
