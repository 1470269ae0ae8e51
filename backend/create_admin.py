"""
Create an admin account.

Registers a confirmed identity with a profile and the admin role. This is
how the first administrator is bootstrapped; later admins can be promoted
through PUT /api/users/{user_id}/role.

Usage:
    python create_admin.py admin@college.edu s3cret-pass --first_name Asha --last_name Rao
"""

import argparse
import sys
from datetime import datetime, timezone

from academic_quality.database import SessionLocal, create_tables
from academic_quality.errors import AuthError, FieldValidationError, StoreError
from academic_quality.logging_config import setup_logging
from academic_quality.models.profile import Role
from academic_quality.services import auth_service, entity_store


def main():
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("email", type=str)
    parser.add_argument("password", type=str)
    parser.add_argument("--first_name", type=str, default="Admin")
    parser.add_argument("--last_name", type=str, default="User")
    args = parser.parse_args()

    setup_logging()
    create_tables()

    db = SessionLocal()
    try:
        result = auth_service.sign_up(db, args.email, args.password, args.first_name, args.last_name)
        if not result.identity.is_confirmed:
            result.identity.email_confirmed_at = datetime.now(timezone.utc)
            result.identity.verification_token = None
            db.commit()
        entity_store.assign_role(db, result.identity.id, Role.ADMIN)
    except FieldValidationError as e:
        for field, message in e.errors.items():
            print(f"  {field}: {message}", file=sys.stderr)
        sys.exit(1)
    except (AuthError, StoreError) as e:
        print(f"Error creating admin: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    print(f"Admin account created for {args.email}")


if __name__ == "__main__":
    main()
