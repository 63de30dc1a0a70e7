#!/usr/bin/env python3
"""
Relief Coordination Demo Data Seeding Script
Populates the database with demo users, an organization, stock and needs for testing and demonstrations
"""

import random
from datetime import timedelta

from app import app
from date_utils import utcnow
from models import db, User, Organization, Need, Dispatch, Stock, Resource, ROLE_ADMIN, ROLE_WORKER, ROLE_INDIVIDUAL
from status_helpers import WORKFLOW_STOCK, STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_RESOURCES_DISPATCHED

DEMO_USERS = [
    ("admin@relief.test", "Relief Administrator", ROLE_ADMIN, "admin123"),
    ("worker@relief.test", "Dana Ortiz", ROLE_WORKER, "worker123"),
    ("driver@relief.test", "Sam Okafor", ROLE_WORKER, "driver123"),
    ("resident@relief.test", "Lee Carter", ROLE_INDIVIDUAL, "resident123"),
    ("neighbor@relief.test", "Priya Shah", ROLE_INDIVIDUAL, "neighbor123"),
]

DEMO_NEEDS = [
    ("water", "Family of five without drinking water since the storm", "high", 18.4655, -77.9188, 20),
    ("food", "Shelter kitchen running low on rice and canned goods", "medium", 18.0179, -76.8099, 50),
    ("medical", "Elderly resident needs insulin and a glucose meter", "high", 18.1096, -77.2975, 2),
    ("shelter", "Roof torn off, need tarpaulins for two households", "medium", 18.4762, -77.8939, 4),
    ("other", "Generator fuel for community water pump", "low", 17.9970, -76.7936, 10),
]


def clear_data():
    """Clear existing data (optional)"""
    print("Clearing existing data...")
    with app.app_context():
        Dispatch.query.delete()
        Need.query.delete()
        Resource.query.delete()
        Stock.query.delete()
        db.session.execute(db.text("DELETE FROM organization_member"))
        User.query.update({"organization_id": None})
        Organization.query.delete()
        User.query.delete()
        db.session.commit()
    print("✓ Data cleared")


def seed_users():
    """Create demo users with different roles"""
    print("\nSeeding users...")

    with app.app_context():
        existing_count = User.query.count()
        if existing_count > 0:
            print(f"  Skipping - {existing_count} users already exist")
            return

        for email, name, role, password in DEMO_USERS:
            user = User(email=email, name=name, role=role)
            user.set_password(password)
            db.session.add(user)
        db.session.commit()
    print(f"✓ Created {len(DEMO_USERS)} users")


def seed_organization():
    """Create one relief organization staffed by the demo workers"""
    print("\nSeeding organization...")

    with app.app_context():
        if Organization.query.count() > 0:
            print("  Skipping - organizations already exist")
            return

        admin = User.query.filter_by(email="worker@relief.test").first()
        organization = Organization(
            name="Island Relief Network",
            description="Volunteer network delivering water, food and medical supplies",
            contact_email="dispatch@islandrelief.test",
            contact_phone="+1 876 555 0100",
            admin_id=admin.id,
        )
        workers = User.query.filter_by(role=ROLE_WORKER).all()
        organization.members.extend(workers)
        db.session.add(organization)
        db.session.flush()

        for worker in workers:
            worker.organization_id = organization.id
        for need_type in ("water", "food", "medical"):
            db.session.add(Resource(
                type=need_type,
                quantity=random.randint(20, 200),
                latitude=18.0 + random.random(),
                longitude=-77.5 + random.random(),
                organization_id=organization.id,
            ))
        db.session.commit()
    print("✓ Created organization with resources")


def seed_stock():
    """Put some of every type on hand"""
    print("\nSeeding stock...")

    with app.app_context():
        if Stock.query.count() > 0:
            print("  Skipping - stock already exists")
            return

        for need_type in ("food", "shelter", "medical", "water", "other"):
            db.session.add(Stock(type=need_type, quantity=random.randint(25, 150)))
        db.session.commit()
    print("✓ Created stock rows")


def seed_needs():
    """Create needs spread across the active workflow's statuses"""
    print("\nSeeding needs...")

    with app.app_context():
        if Need.query.count() > 0:
            print("  Skipping - needs already exist")
            return

        workflow = app.config["NEED_WORKFLOW"]
        reporters = User.query.filter_by(role=ROLE_INDIVIDUAL).all()
        dispatcher = User.query.filter_by(role=ROLE_WORKER).first()
        now = utcnow()

        for index, (need_type, description, urgency, lat, lng, required) in enumerate(DEMO_NEEDS):
            need = Need(
                type=need_type,
                description=description,
                urgency=urgency,
                latitude=lat,
                longitude=lng,
                status=STATUS_PENDING,
                required_quantity=required,
                fulfilled_quantity=0,
                created_by_id=reporters[index % len(reporters)].id,
                created_at=now - timedelta(hours=random.randint(1, 72)),
            )
            db.session.add(need)

            # Every other need already has work under way
            if index % 2 == 1:
                if workflow == WORKFLOW_STOCK:
                    need.status = STATUS_IN_PROGRESS
                    need.fulfilled_quantity = required // 2
                else:
                    need.status = STATUS_RESOURCES_DISPATCHED
                    need.dispatches.append(Dispatch(
                        eta=random.randint(15, 120),
                        resource_amount=max(1, required // 2),
                        dispatched_by_id=dispatcher.id,
                        dispatched_at=now - timedelta(minutes=random.randint(5, 90)),
                    ))
        db.session.commit()
    print(f"✓ Created {len(DEMO_NEEDS)} needs")


def main():
    """Main seeding function"""
    print("=" * 60)
    print("Relief Coordination Demo Data Seeding Script")
    print("=" * 60)

    with app.app_context():
        db.create_all()

    # Uncomment to clear existing data first
    # clear_data()

    seed_users()
    seed_organization()
    seed_stock()
    seed_needs()

    print("\n" + "=" * 60)
    print("✓ Demo data seeding complete!")
    print("=" * 60)
    print("\nDemo Login Credentials:")
    print("-" * 60)
    for email, _, role, password in DEMO_USERS:
        print(f"{role.capitalize():<12} {email} / {password}")
    print("=" * 60)


if __name__ == "__main__":
    main()
