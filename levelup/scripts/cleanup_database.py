"""
One-shot maintenance for the content catalog.

Lists what is in the catalog and optionally removes the placeholder categories
an early seed created. A placeholder that already has chapters is kept and
reported, never deleted.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy import asc, func, select
from sqlalchemy.orm import Session

from levelup.core.db import SessionLocal
from levelup.models.content import Category, Chapter

logger = logging.getLogger("cleanup-database")

PLACEHOLDER_SLUGS = ("leadership", "communication", "productivity", "team-building")


@dataclass
class CleanupResult:
    deleted: List[str] = field(default_factory=list)
    kept_with_chapters: List[str] = field(default_factory=list)


def report_catalog(db: Session) -> None:
    categories = db.execute(select(Category).order_by(asc(Category.sort_order))).scalars().all()
    logger.info("categories=%s", len(categories))
    for cat in categories:
        logger.info("  - %s (%s) order=%s", cat.title, cat.slug, cat.sort_order)

    chapters = db.execute(
        select(Chapter).order_by(asc(Chapter.category_id), asc(Chapter.chapter_number))
    ).scalars().all()
    logger.info("chapters=%s", len(chapters))
    for ch in chapters:
        preview = (ch.content or "")[:100] or "No content"
        logger.info("  - %r (%s) cat=%s #%s: %s", ch.title, ch.slug, ch.category_id, ch.chapter_number, preview)


def delete_placeholders(
    db: Session,
    *,
    slugs: Sequence[str] = PLACEHOLDER_SLUGS,
    dry_run: bool = False,
) -> CleanupResult:
    res = CleanupResult()
    rows = db.execute(select(Category).where(Category.slug.in_(list(slugs)))).scalars().all()
    for cat in rows:
        n = db.execute(select(func.count(Chapter.id)).where(Chapter.category_id == cat.id)).scalar_one()
        if n:
            res.kept_with_chapters.append(cat.slug)
            continue
        res.deleted.append(cat.slug)
        if not dry_run:
            db.delete(cat)
    if dry_run:
        db.rollback()
    else:
        db.commit()
    return res


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="levelup-api: inspect and clean the content catalog")
    parser.add_argument("--delete-placeholders", action="store_true", help="Remove empty placeholder categories")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be deleted")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    with SessionLocal() as db:
        report_catalog(db)
        if args.delete_placeholders:
            res = delete_placeholders(db, dry_run=args.dry_run)
            logger.info(
                "placeholders deleted=%s kept_with_chapters=%s dry_run=%s",
                res.deleted,
                res.kept_with_chapters,
                args.dry_run,
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
