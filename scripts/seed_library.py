#!/usr/bin/env python3
"""
Seed the exercise and recipe libraries from a Markdown file.

Parses SEED_LIBRARY.md and creates each item through the repositories,
so slugs and validation match what the API would produce. Items whose
slug already exists are skipped, which makes the script safe to re-run.

Usage:
    python scripts/seed_library.py [--dry-run] [--file SEED_LIBRARY.md]

Requires:
    - .env file with SUPABASE_URL and SUPABASE_KEY
"""

import re
import sys
from pathlib import Path

# Make the coachdesk package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from coachdesk.config.settings import get_settings  # noqa: E402
from coachdesk.infrastructure.database import (  # noqa: E402
    DuplicateRecordError,
    SupabaseConfig,
    create_table_gateway,
)
from coachdesk.infrastructure.repositories import ExerciseRepository, RecipeRepository  # noqa: E402

_FIELD_RE = re.compile(r"^\*\*(Type|Title|Muscle group|Equipment):\*\*\s*(.+?)\s*$")


def parse_library_markdown(filepath: str) -> list[dict]:
    """
    Split the seed file into items.

    Items are separated by a line containing only '---'. Each item starts
    with metadata lines:
        **Type:** exercise | recipe   (required)
        **Title:** ...                (required)
        **Muscle group:** ...         (exercises, optional)
        **Equipment:** ...            (exercises, optional)
    Everything after the metadata is the Markdown description.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        content = f.read()

    items = []
    for raw_item in content.split("\n---\n"):
        fields: dict[str, str] = {}
        body: list[str] = []
        for line in raw_item.strip().split("\n"):
            match = _FIELD_RE.match(line) if not body else None
            if match:
                fields[match.group(1).lower().replace(" ", "_")] = match.group(2)
            elif line.strip() or body:
                body.append(line)

        kind = fields.get("type", "").lower()
        if kind not in ("exercise", "recipe") or not fields.get("title"):
            continue

        items.append({
            "type": kind,
            "title": fields["title"],
            "muscle_group": fields.get("muscle_group"),
            "equipment": fields.get("equipment"),
            "description": "\n".join(body).strip() or None,
        })

    return items


def seed(items: list[dict], dry_run: bool = False) -> bool:
    if dry_run:
        print("\n=== DRY RUN - No data will be inserted ===\n")
        for item in items:
            print(f"Would create {item['type']}: {item['title']}")
        print(f"\nTotal: {len(items)} items")
        return True

    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        print("ERROR: Missing SUPABASE_URL or SUPABASE_KEY")
        return False

    gateway = create_table_gateway(
        config=SupabaseConfig(url=settings.supabase_url, key=settings.supabase_key)
    )
    exercises = ExerciseRepository(gateway)
    recipes = RecipeRepository(gateway)

    created = skipped = 0
    for item in items:
        try:
            if item["type"] == "exercise":
                exercises.create(
                    item["title"],
                    muscle_group=item["muscle_group"],
                    equipment=item["equipment"],
                    description=item["description"],
                )
            else:
                recipes.create(item["title"], description=item["description"])
            created += 1
            print(f"[OK] {item['type']}: {item['title']}")
        except DuplicateRecordError:
            skipped += 1
            print(f"[SKIP] {item['type']} already exists: {item['title']}")

    print("\n=== Seed Complete ===")
    print(f"Created: {created}")
    print(f"Skipped: {skipped}")
    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Seed exercises and recipes into Supabase")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, don't insert")
    parser.add_argument("--file", default="SEED_LIBRARY.md", help="Seed file path")
    args = parser.parse_args()

    filepath = Path(args.file)
    if not filepath.exists():
        # Try relative to the project root
        filepath = Path(__file__).parent.parent / args.file

    if not filepath.exists():
        print(f"ERROR: Cannot find {args.file}")
        sys.exit(1)

    print(f"Parsing library from: {filepath}")
    items = parse_library_markdown(str(filepath))
    print(f"Found {len(items)} items")

    if not items:
        print("ERROR: No valid items found in seed file")
        sys.exit(1)

    sys.exit(0 if seed(items, dry_run=args.dry_run) else 1)


if __name__ == "__main__":
    main()
