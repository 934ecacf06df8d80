"""
Content verification script.

Loads a content root the way the player does, checks every story
reference, and reports stories no chapter or start story can reach.

Usage:
    python verify_content.py [resources]

Exit codes:
    0 - Content loaded and all references resolve
    1 - Content is broken
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from frameg.core.errors import ContentError
from narrative.story import LoadedContent, load_content
from narrative.story.model import controller_targets


def reachable_stories(content: LoadedContent) -> set[str]:
    """Story ids reachable from the manifest's start story and chapters."""
    store = content.store
    pending = list(content.entry.story_ids)
    seen: set[str] = set()

    while pending:
        story_id = pending.pop()
        if story_id in seen or not store.has_story(story_id):
            continue
        seen.add(story_id)
        for entry in store.story(story_id).entries:
            pending.extend(controller_targets(entry.controller))

    return seen


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Verify story content")
    parser.add_argument("root", nargs="?", default="resources", help="content root directory")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger("ContentVerification")

    try:
        logger.info(f"Loading content from {args.root}...")
        content = load_content(Path(args.root))
    except ContentError as e:
        logger.error(f"VERIFICATION FAILED: {e}")
        return 1

    unreachable = set(content.store.story_ids) - reachable_stories(content)
    for story_id in sorted(unreachable):
        logger.warning(f"Story {story_id!r} is not reachable from the manifest")

    logger.info(
        f"VERIFICATION SUCCESSFUL: '{content.entry.name}' with "
        f"{len(content.store.story_ids)} stories and {len(content.entry.chapters)} chapters."
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
