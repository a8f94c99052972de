"""
Master Database Seeding Script
Creates database tables and populates them with demo agency data
"""

from datetime import timedelta

from app.database import SessionLocal
from app.models import Client, Deliverable, Profile, ProfileRole, Project, SocialPost
from app.utils.dates import utcnow
from create_tables import create_tables

DEMO_CLIENTS = [
    {"name": "Café Aurora", "email": "hola@cafeaurora.com", "full_name": "Lucía Herrera"},
    {"name": "Verde Estudio", "email": "contacto@verdeestudio.mx", "full_name": "Marco Díaz"},
    {"name": "Nómada Travel", "email": "team@nomadatravel.com", "full_name": None},  # no portal account
]

# Structure: name, client index, days from today to end date, deliverables (name, days from today, status)
DEMO_PROJECTS = [
    ("Brand refresh", 0, 5, [("Logo variations", -8, "in_review"), ("Brand book", -2, "pending")]),
    ("Spring campaign", 1, 2, [("Campaign copy", -3, "in_progress"), ("Key visual", 1, "pending")]),
    ("Website launch", 2, 20, [("Sitemap", -1, "pending"), ("Homepage design", 6, "approved")]),
]


def seed_demo_data():
    now = utcnow()
    with SessionLocal() as db:
        if db.query(Client).count():
            print("ℹ️  Demo data already present, skipping")
            return

        clients = []
        for data in DEMO_CLIENTS:
            profile = None
            if data["full_name"]:
                profile = Profile(email=data["email"], full_name=data["full_name"], role=ProfileRole.CLIENT.value)
                db.add(profile)
                db.flush()
            client = Client(name=data["name"], email=data["email"], profile_id=profile.id if profile else None)
            db.add(client)
            clients.append(client)
        db.flush()

        for name, client_index, end_in_days, deliverables in DEMO_PROJECTS:
            project = Project(
                name=name,
                client_id=clients[client_index].id,
                status="active",
                progress=40,
                start_date=now - timedelta(days=30),
                end_date=now + timedelta(days=end_in_days),
            )
            db.add(project)
            db.flush()
            for deliverable_name, due_in_days, status in deliverables:
                db.add(Deliverable(
                    project_id=project.id,
                    name=deliverable_name,
                    status=status,
                    due_date=(now + timedelta(days=due_in_days)).date(),
                ))
            db.add(SocialPost(
                project_id=project.id,
                title=f"{name} teaser",
                platform="instagram",
                scheduled_date=(now + timedelta(days=1)).date(),
                status="scheduled",
                hashtags=["#epikom"],
            ))

        db.commit()
        print(f"✅ Seeded {len(DEMO_CLIENTS)} clients and {len(DEMO_PROJECTS)} projects")


if __name__ == "__main__":
    create_tables()
    seed_demo_data()
