#!/usr/bin/env python3
"""Render what a tenant URL would show: the blog index or a post's header and body.

Usage:
    python scripts/render_post.py <host> <path>

Example:
    python scripts/render_post.py jane.bloggish.io /my-first-post
    python scripts/render_post.py jane.bloggish.io /
"""

import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.header_renderer import HeaderRenderer
from src.post_reader import BlogUser, Post, build_blog_index, resolve_post_header
from src.supabase_client import SupabaseClient
from src.tenant_routing import TenantRouter
from src.utils.config import load_config
from src.utils.logger import setup_logging


def render(host: str, path: str) -> int:
    config = load_config(str(PROJECT_ROOT / "config.yaml"))
    setup_logging(log_dir=str(PROJECT_ROOT / config["logging"]["dir"]), level=config["logging"]["level"])
    log = logging.getLogger("render_post")

    router = TenantRouter.from_config(config)
    subdomain = router.resolve(host)
    if subdomain is None:
        print(f"Not a tenant host: {host}")
        return 1
    log.info(f"Routing {host}{path} -> {router.rewrite_path(host, path)}")

    client = SupabaseClient.from_config(config)
    user_row = client.get_user_by_subdomain(subdomain)
    if user_row is None:
        print(f"Blog not found: {subdomain}")
        return 1
    user = BlogUser.from_row(user_row)

    segment = path.strip("/")
    if not segment:
        posts = [Post.from_row(row) for row in client.get_published_posts(user.id)]
        entries = build_blog_index(posts)
        print(f"{user.name or subdomain}'s Blog ({len(entries)} {'post' if len(entries) == 1 else 'posts'})")
        for entry in entries:
            print(f"   {entry.date or ''}  /{entry.path}  {entry.title}")
            if entry.subtitle:
                print(f"      {entry.subtitle}")
        return 0

    post_row = client.get_public_post(user.id, segment)
    if post_row is None:
        print(f"Post not found: /{segment}")
        return 1

    rendered = resolve_post_header(Post.from_row(post_row), user=user, renderer=HeaderRenderer())
    if rendered.from_legacy_html:
        log.info(f"Post {rendered.post.id} header recovered from legacy HTML")
    print(rendered.header_html)
    print(rendered.body)
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)

    try:
        sys.exit(render(sys.argv[1], sys.argv[2]))
    except Exception as e:
        print(f"FAILED: {e}", file=sys.stderr)
        sys.exit(1)
