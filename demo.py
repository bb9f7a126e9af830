#!/usr/bin/env python3
"""
Demo script for the latest tag resolver.
Runs the activities directly (no Temporal worker) against a public repository,
twice, to show the second lookup being served from the cache.
"""

import asyncio
import sys
import time

from latest_tag.activities import LatestTagActivities
from latest_tag.utils import generate_resolution_id


async def demo_resolution(repo_url: str):
    print("🏷️  Latest Tag Resolver Demo")
    print("=" * 50)

    activities = LatestTagActivities()
    resolution_id = generate_resolution_id()

    print(f"📁 Repository: {repo_url}")
    print()

    for attempt in (1, 2):
        started = time.perf_counter()
        print(f"{attempt}️⃣ Resolving publish state...")
        state = await activities.get_repo_publish_state([repo_url, resolution_id])
        elapsed = (time.perf_counter() - started) * 1000
        print(f"   ✅ {state} ({elapsed:.0f} ms)")

    if not state["latest_tag"]:
        print("   ℹ️ Repository has no tags")
        return

    if state["is_up_to_date"]:
        print(f"   🎯 Default branch is on {state['latest_tag']}")
        return

    print("3️⃣ Resolving ahead-by count...")
    ahead_by = await activities.get_ahead_by_count([repo_url, state["latest_tag"], resolution_id])
    print(f"   ➕ Default branch is {ahead_by} commits ahead of {state['latest_tag']}")


if __name__ == "__main__":
    repo = sys.argv[1] if len(sys.argv) > 1 else "https://github.com/octocat/Hello-World"
    print("Note: This uses the GitHub GraphQL API, which requires GITHUB_TOKEN.")
    print()

    try:
        asyncio.run(demo_resolution(repo))
    except KeyboardInterrupt:
        print("\n⏹️ Demo interrupted by user.")
    except Exception as e:
        print(f"\n❌ Demo failed: {str(e)}")
