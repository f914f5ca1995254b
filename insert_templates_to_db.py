#!/usr/bin/env python3
"""
Script to create the tables, insert the default email templates and,
optionally, an administrator account.

Usage:
    python insert_templates_to_db.py
    python insert_templates_to_db.py --admin-email admin@clinic.local --admin-password secret123
"""

import argparse

from app import models  # noqa: F401
from app.database import Base, SessionLocal, engine
from app.domain.notifications.service import seed_email_templates
from app.models import AuthUser, Profile, generate_id
from app.security_utils import hash_password
from app.shared.validators import validate_email


def create_admin(db, email: str, password: str, full_name: str) -> None:
    email = validate_email(email)
    if db.query(AuthUser).filter(AuthUser.email == email).first():
        print(f"   ⚠️  {email} already has an account, skipping")
        return
    admin_id = generate_id()
    db.add(AuthUser(id=admin_id, email=email, password_hash=hash_password(password)))
    db.add(Profile(id=admin_id, email=email, full_name=full_name, role="admin"))
    db.commit()
    print(f"   ✅ Admin {email} created")


def main():
    parser = argparse.ArgumentParser(description="Seed the clinic database")
    parser.add_argument("--admin-email")
    parser.add_argument("--admin-password")
    parser.add_argument("--admin-name", default="Clinic Administrator")
    args = parser.parse_args()

    print("🔍 Creating tables...")
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        print("\n1️⃣ Inserting default email templates...")
        added = seed_email_templates(db)
        print(f"   ✅ {added} template(s) added")

        if args.admin_email and args.admin_password:
            print("\n2️⃣ Creating administrator...")
            create_admin(db, args.admin_email, args.admin_password, args.admin_name)
    except Exception as e:
        db.rollback()
        print(f"   ❌ Error: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
