#!/usr/bin/env python
"""Idempotent seed script for the device and service type catalog.

Existing rows (matched by code) get their name and description refreshed;
sort order follows the default list.

Usage:
    python backend/scripts/seed_catalog.py
    python backend/scripts/seed_catalog.py --dry-run   # run logic then rollback
"""
from __future__ import annotations
import os, sys, argparse
from sqlalchemy import select

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from repairdesk import create_app, get_db  # type: ignore
from repairdesk.constants.catalog import DEFAULT_DEVICE_TYPES, DEFAULT_SERVICE_TYPES
from repairdesk.models.catalog import DeviceType, ServiceType


def upsert_entries(session, model, entries):
    created = updated = 0
    for position, (code, name, description) in enumerate(entries):
        row = session.execute(select(model).where(model.code == code)).scalar_one_or_none()
        if row is None:
            session.add(model(code=code, name=name, description=description, sort_order=position, is_active=True))
            created += 1
        else:
            row.name, row.description, row.sort_order = name, description, position
            updated += 1
    return created, updated


def main(argv=None):
    parser = argparse.ArgumentParser(description='Seed device and service types')
    parser.add_argument('--dry-run', action='store_true')
    args = parser.parse_args(argv)
    app = create_app()
    with app.app_context():
        session = get_db()
        results = {
            'device_types': upsert_entries(session, DeviceType, DEFAULT_DEVICE_TYPES),
            'service_types': upsert_entries(session, ServiceType, DEFAULT_SERVICE_TYPES),
        }
        if args.dry_run:
            session.rollback()
        else:
            session.commit()
        prefix = '[dry-run] ' if args.dry_run else ''
        for table, (created, updated) in results.items():
            print(f'{prefix}{table}: created={created} updated={updated}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
