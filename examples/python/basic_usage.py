#!/usr/bin/env python3
"""
Basic GitPeek usage example.

Publishes a share link for a repository served by the in-memory fake
upstream, then visits it the way the HTTP surface does.
Run with: python examples/python/basic_usage.py
"""

import asyncio

from gitpeek import ContentAggregator, GitHubClient, GitPeekError, Store, resolve
from gitpeek.rendering import MarkdownRenderer, MediaResolver, RenderContext
from gitpeek.testing import FakeGitHub, create_owner
from gitpeek.types import RepositorySnapshot

print("=== GitPeek Basic Usage Example ===\n")

# 1. Resolve repository references
print("1. Resolving repository references...")
for raw in ["acme/widgets", "https://github.com/acme/widgets/", "widgets"]:
    print(f"   {raw!r} -> {resolve(raw)}")
print()

# 2. Set up a store and a fake upstream
print("2. Publishing a share link...")
fake = FakeGitHub()
fake.add_repo("acme", "widgets")
fake.add_file("acme", "widgets", "README.md", "# Widgets\n\n**Fast** widgets.\n\n![Logo](docs/logo.png)")
fake.add_file("acme", "widgets", "LICENSE", "MIT License\n\nCopyright (c) 2024 Acme")
fake.add_file("acme", "widgets", "docs/logo.png", b"\x89PNG\r\n\x1a\n")

store = Store.from_url("sqlite://")
store.create_all()
owner = create_owner(store, access_token=fake.token)
redirect = store.publish(owner.user_id, "https://github.com/acme/widgets")
print(f"   Share ID: {redirect.id}\n")


async def visit() -> None:
    async with GitHubClient(transport=fake.transport()) as github:
        aggregator = ContentAggregator(store, github)

        # 3. Build the snapshot a visitor sees
        print("3. Building snapshot...")
        snapshot = await aggregator.build_snapshot(redirect.id)
        if not isinstance(snapshot, RepositorySnapshot):
            print(f"   Unavailable: {snapshot.reason}")
            return
        await aggregator.record_view(redirect.id)
        print(f"   {snapshot.metadata.full_name} ({snapshot.metadata.visibility})")
        for entry in snapshot.entries:
            print(f"   {'[dir] ' if entry.is_dir else '      '}{entry.path}")
        print()

        # 4. Render the README with private images inlined
        print("4. Rendering README...")
        context = RenderContext(
            repo_html_url=snapshot.metadata.html_url,
            branch=snapshot.metadata.default_branch,
            redirect_id=redirect.id,
        )
        rendered = MarkdownRenderer().render(snapshot.readme or "", context)
        page = await MediaResolver(aggregator.fetch_image_as_data_url).finish(rendered, context)
        print(f"   {page}\n")

        # 5. Upstream errors stay typed below the aggregator
        print("5. Calling upstream directly with a bad token...")
        try:
            await github.get_authenticated_user("gho_not_a_real_token")
        except GitPeekError as e:
            print(f"   Caught {type(e).__name__}: code={e.code}\n")


asyncio.run(visit())

stats = store.get_view_stats(redirect.id)
print(f"Views recorded: {stats.count}")
print("\n=== Done ===")
