#!/usr/bin/env python
"""Idempotent seed script for the first administrator account.

Usage:
    python backend/scripts/seed_admin.py --phone 13800000000 --name Admin --password secret
    python backend/scripts/seed_admin.py --phone 13800000000 --dry-run   # run logic then rollback
"""
from __future__ import annotations
import os, sys, argparse
from sqlalchemy import select

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from repairdesk import create_app, get_db  # type: ignore
from repairdesk.constants.roles import Role
from repairdesk.models.user import User
from repairdesk.utils.validation import is_valid_phone


def ensure_admin(session, phone: str, name: str, password: str | None):
    user = session.execute(select(User).where(User.phone == phone)).scalar_one_or_none()
    if user is None:
        user = User(phone=phone, name=name, role=Role.ADMIN.value, is_active=True)
        session.add(user)
        created = True
    else:
        user.role = Role.ADMIN.value
        user.is_active = True
        created = False
    if password:
        user.set_password(password)
    return user, created


def main(argv=None):
    parser = argparse.ArgumentParser(description='Seed an administrator account')
    parser.add_argument('--phone', required=True)
    parser.add_argument('--name', default='Administrator')
    parser.add_argument('--password')
    parser.add_argument('--dry-run', action='store_true')
    args = parser.parse_args(argv)
    if not is_valid_phone(args.phone):
        parser.error('phone must be an 11-digit mobile number')
    app = create_app()
    with app.app_context():
        session = get_db()
        user, created = ensure_admin(session, args.phone, args.name, args.password)
        if args.dry_run:
            session.rollback()
            print(f"[dry-run] admin {'would be created' if created else 'exists'} for {args.phone}")
            return 0
        session.commit()
        print(f"admin {'created' if created else 'updated'}: id={user.id} phone={user.phone}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
