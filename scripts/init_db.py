"""Script to create database tables and, optionally, a first account."""
import argparse
import getpass
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from boxbox.database import SessionLocal, engine, Base
from boxbox.models import User
from boxbox.auth import get_password_hash


def init_db(email=None, password=None, name=None):
    """Create tables, then the account if an email is given and not yet taken."""
    Base.metadata.create_all(bind=engine)
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    
    if not email:
        return
    
    db = SessionLocal()
    try:
        email = email.lower()
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print(f"User already exists: {existing.email}")
            return
        
        user = User(
            email=email,
            name=name,
            hashed_password=get_password_hash(password),
            is_active=True
        )
        db.add(user)
        db.commit()
        print(f"User created: {email}")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", help="Create an account with this email")
    parser.add_argument("--name", help="Display name for the account")
    args = parser.parse_args()
    
    password = None
    if args.email:
        password = os.getenv("BOXBOX_PASSWORD") or getpass.getpass("Password: ")
    init_db(args.email, password, args.name)


if __name__ == "__main__":
    main()
