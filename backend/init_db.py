"""
Initialize database and optionally seed a demo link.

Run this script once to set up the database:
    python init_db.py
    python init_db.py --demo https://example.com/page
"""

import argparse

from shortlinks.config import settings
from shortlinks.database import engine, Base, SessionLocal
from shortlinks.core.errors import LinkError
from shortlinks.services.links import activate_link, build_short_url, create_link


def init_database():
    """Create all database tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")


def create_demo_link(url: str):
    """Create an active link pointing at url"""
    db = SessionLocal()

    try:
        link = create_link(db, url)
        link = activate_link(db, link.id)

        print("\n" + "="*50)
        print("Demo link created and activated!")
        print("="*50)
        print(f"Short URL: {build_short_url(link)}")
        print(f"Target:    {link.original_url}")
        print(f"Resolves only for requests with Host: {link.domain}")
        print("="*50)
        if link.domain != "localhost":
            print("Tip: set DEFAULT_DOMAIN=localhost to try the link locally")

    except LinkError as e:
        print(f"Error creating demo link: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the short links database")
    parser.add_argument("--demo", metavar="URL", help="seed an active link to URL")
    args = parser.parse_args()

    print("="*50)
    print("Custom Short Links - Database Initialization")
    print(f"Database: {settings.DATABASE_URL}")
    print("="*50)

    init_database()
    if args.demo:
        create_demo_link(args.demo)

    print("\n✅ Database initialization complete!")
    print("\nYou can now start the server with:")
    print("    uvicorn shortlinks.main:app --reload")
