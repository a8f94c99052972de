# create_tables.py
from app.database import Base, engine, SessionLocal
from app.models import Profile, ProfileRole
import app.models  # noqa: F401  registers every table on Base.metadata
import os


def create_tables():
    """Create all tables"""
    try:
        Base.metadata.create_all(bind=engine)
        print("✅ All tables created successfully!")

        create_default_admin()

    except Exception as e:
        print(f"❌ Error creating tables: {e}")


def create_default_admin():
    """Create the default admin profile"""
    email = os.getenv("ADMIN_EMAIL", "admin@epikom.com")
    with SessionLocal() as db:
        if db.query(Profile).filter(Profile.email == email).first():
            print("ℹ️  Admin profile already exists")
            return

        db.add(Profile(email=email, full_name="Epikom Admin", role=ProfileRole.ADMIN.value))
        db.commit()
        print("✅ Default admin profile created!")
        print(f"   Email: {email}")


if __name__ == "__main__":
    create_tables()
