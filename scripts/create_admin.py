"""Script to create the initial admin account.

Registration only ever creates employees, so admins are bootstrapped here:

    python scripts/create_admin.py --name "Jane Admin" --email admin@example.com --password s3cret!
"""
import argparse
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.database import SessionLocal, engine, Base
from app.core.exceptions import BaseAPIException
from app.core.logging_config import setup_logging
from app.auth.models import User, UserRole
from app.auth.schemas import UserCreate
from app.auth.service import AuthService
import app.tasks.models  # noqa: F401  registers the tasks table


def create_admin(name: str, email: str, password: str) -> int:
    """Create an admin account unless one already uses this email."""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email.strip().lower()).first()
        if existing:
            print(f"User already exists: {existing.email} ({existing.role.value})")
            return 1

        try:
            admin = AuthService(db).create_user(
                UserCreate(name=name, email=email, password=password),
                role=UserRole.ADMIN
            )
        except BaseAPIException as e:
            print(f"Could not create admin: {e.detail}")
            return 1

        print("Admin user created successfully!")
        print(f"Email: {admin.email}")
        print("\nPlease change the password after first login!")
        return 0
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Administrator"))
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    args = parser.parse_args()

    if not args.email or not args.password:
        parser.error("--email and --password are required (or set ADMIN_EMAIL and ADMIN_PASSWORD)")

    setup_logging(log_level="WARNING")
    sys.exit(create_admin(args.name, args.email, args.password))


if __name__ == "__main__":
    main()
