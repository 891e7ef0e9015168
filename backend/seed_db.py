"""
JobPortal Database Seeder

Creates demo accounts for each role and a couple of open jobs:
- An administrator
- A hiring manager with two postings
- An applicant who has already applied to one of them
- A post on the public board
"""

import sys
sys.path.insert(0, ".")

from datetime import timedelta

from jobportal.core.security import Principal
from jobportal.db.base import Base, utcnow
from jobportal.db.session import SessionLocal, engine
from jobportal.models import Role
from jobportal.services import applications, jobs, posts, users


def _principal(user) -> Principal:
    return Principal(user_id=user.id, name=user.username, email=user.email, role=user.role)


def seed_database():
    """Seed the database with demo data."""

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        # Check if already seeded
        if users.get_user_by_email(db, "manager@jobportal.dev"):
            print("Database already seeded. Skipping...")
            return

        print("Seeding database...")

        users.ensure_admin(db, "admin@jobportal.dev", "admin123")

        manager = users.create_user(
            db,
            email="manager@jobportal.dev",
            username="sarah.chen",
            password="manager123",
            role=Role.MANAGER,
            name="Sarah",
            surname="Chen",
        )
        applicant = users.register_user(
            db,
            {
                "email": "john.doe@example.com",
                "username": "john.doe",
                "password": "applicant123",
                "confirm_password": "applicant123",
                "name": "John",
                "surname": "Doe",
            },
        )

        deadline = utcnow() + timedelta(days=30)
        backend_job = jobs.create_job(
            db,
            _principal(manager),
            {
                "title": "Backend Engineer",
                "description": "Build and operate the services behind our hiring platform.",
                "location": "Remote",
                "employment_type": "Full-time",
                "salary_min": 60000,
                "salary_max": 90000,
                "company_name": "Acme Corp",
                "application_deadline": deadline,
            },
        )
        jobs.create_job(
            db,
            _principal(manager),
            {
                "title": "QA Intern",
                "description": "Help us test the mobile app before each release.",
                "location": "Berlin",
                "employment_type": "Internship",
                "company_name": "Acme Corp",
                "application_deadline": deadline,
            },
        )

        applications.apply(
            db,
            backend_job.id,
            _principal(applicant),
            cover_letter="I have five years of Python experience.",
        )

        posts.create_post(
            db,
            _principal(manager),
            "We are hiring backend engineers in Berlin and remotely!",
        )

        print("✅ Database seeded successfully!")
        print("\n📋 Created Users:")
        print("   - admin@jobportal.dev (password: admin123) [Admin]")
        print("   - manager@jobportal.dev (password: manager123) [Manager]")
        print("   - john.doe@example.com (password: applicant123) [Applicant]")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
