from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from levelup.core.db import SessionLocal
from levelup.models.content import Category, Chapter
from levelup.seed.default_content import DEFAULT_CATEGORIES, DEFAULT_CHAPTERS

logger = logging.getLogger("seed-content")


def seed_default_content(db: Session) -> int:
    """Insert the default catalog rows that are missing (matched by slug). Returns rows added."""
    added = 0
    by_slug = {c.slug: c for c in db.execute(select(Category)).scalars().all()}
    for data in DEFAULT_CATEGORIES:
        if data["slug"] in by_slug:
            continue
        category = Category(**data)
        db.add(category)
        by_slug[category.slug] = category
        added += 1
    db.flush()

    existing = set(db.execute(select(Chapter.slug)).scalars().all())
    for data in DEFAULT_CHAPTERS:
        if data["slug"] in existing:
            continue
        fields = {k: v for k, v in data.items() if k != "category"}
        db.add(Chapter(category_id=by_slug[data["category"]].id, **fields))
        added += 1

    db.commit()
    return added


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="levelup-api: seed the default content catalog")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    with SessionLocal() as db:
        added = seed_default_content(db)
    logger.info("seed finished added=%s", added)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
