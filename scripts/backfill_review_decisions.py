#!/usr/bin/env python3
"""Copy legacy ratings-embedded decisions into application_reviews.decision.

This script will:
- find reviews whose decision column is empty
- read ratings['decision'] when present and non-empty
- write it to the decision column, leaving updated_at/submitted_at untouched
  (staleness falls back to updated_at, so the backfill must not move it)

Run from project root: python scripts/backfill_review_decisions.py [--dry-run]
"""
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from reviewhub import create_app
from reviewhub.extensions import db
from reviewhub.models.review import LEGACY_DECISION_KEY, ReviewRecord


def legacy_decision(ratings):
    if not isinstance(ratings, dict):
        return None
    value = ratings.get(LEGACY_DECISION_KEY)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def backfill(dry_run=False):
    table = ReviewRecord.__table__
    rows = (
        ReviewRecord.query
        .filter((ReviewRecord.decision.is_(None)) | (ReviewRecord.decision == ''))
        .order_by(ReviewRecord.id)
        .all()
    )
    total = len(rows)
    fixed = 0
    for review in rows:
        decision = legacy_decision(review.ratings)
        if decision is None:
            continue
        fixed += 1
        if dry_run:
            continue
        db.session.execute(
            table.update()
            .where(table.c.id == review.id)
            .values(decision=decision, updated_at=table.c.updated_at)
        )
    if fixed and not dry_run:
        db.session.commit()
    return total, fixed


def main():
    dry_run = '--dry-run' in sys.argv[1:]
    app = create_app()
    with app.app_context():
        total, fixed = backfill(dry_run=dry_run)
        verb = 'would backfill' if dry_run else 'backfilled'
        print(f"Scanned {total} reviews without a decision, {verb} {fixed} rows.")


if __name__ == '__main__':
    main()
