"""Tenant Routing — maps <tenant>.bloggish.io hosts onto per-tenant blog paths."""

from __future__ import annotations

import logging

log = logging.getLogger(__name__)

# Framework asset paths are served as-is on every host
PASSTHROUGH_PREFIXES = ("/_next", "/favicon.ico")


class TenantRouter:
    """Resolves the tenant subdomain from a request host."""

    def __init__(self, root_domain="bloggish.io", reserved=("www", "bloggish")):
        self.root_domain = root_domain.lower().strip(".")
        self.reserved = {name.lower() for name in reserved}

    @classmethod
    def from_config(cls, config: dict) -> "TenantRouter":
        tenant_cfg = config.get("tenant", {})
        return cls(
            root_domain=tenant_cfg.get("root_domain", "bloggish.io"),
            reserved=tenant_cfg.get("reserved_subdomains", ("www", "bloggish")),
        )

    def resolve(self, host: str) -> str | None:
        """Return the tenant subdomain for ``host``, or None for non-tenant hosts."""
        host = (host or "").strip().lower()
        host = host.rsplit(":", 1)[0] if ":" in host else host
        suffix = f".{self.root_domain}"
        if not host.endswith(suffix):
            return None

        subdomain = host[: -len(suffix)]
        if not subdomain or subdomain in self.reserved:
            return None
        return subdomain

    def rewrite_path(self, host: str, path: str) -> str:
        """Rewrite a tenant request path to /blog/<tenant><path>."""
        path = path or "/"
        if path.startswith(PASSTHROUGH_PREFIXES):
            return path

        subdomain = self.resolve(host)
        if subdomain is None:
            return path

        rewritten = f"/blog/{subdomain}{path if path.startswith('/') else '/' + path}"
        log.debug(f"Rewrote {host}{path} -> {rewritten}")
        return rewritten
