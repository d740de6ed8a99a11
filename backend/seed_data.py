"""Seed database with demo data and print bearer tokens for the demo users."""
from datetime import date, timedelta
import uuid

from itad_portal.auth import create_access_token
from itad_portal.database import SessionLocal
from itad_portal.models import Company, Request, User


def seed():
    """Seed database with demo data."""
    db = SessionLocal()

    try:
        company = Company(
            id=uuid.UUID('00000000-0000-0000-0000-000000000001'),
            name="Demo Corp",
        )
        db.add(company)
        db.flush()

        users_data = [
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000101'),
                'email': 'ops@itad-portal.local',
                'full_name': 'Operations Admin',
                'role': 'admin',
                'company_id': None,
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000102'),
                'email': 'it@democorp.example',
                'full_name': 'Dana Client',
                'role': 'client',
                'company_id': company.id,
            },
        ]
        users = []
        for user_data in users_data:
            user = User(**user_data)
            db.add(user)
            users.append(user)
        db.flush()

        db.add(Request(
            request_number='REQ-DEMO-000001',
            company_id=company.id,
            submitted_by=users[1].id,
            status='pending',
            address='100 Main St',
            city='Springfield',
            state='IL',
            zip_code='62701',
            on_site_contact_name='Dana Client',
            preferred_date=date.today() + timedelta(days=7),
            equipment=[
                {'type': 'laptop', 'quantity': 25},
                {'type': 'server', 'quantity': 2},
            ],
        ))

        db.commit()
        print("✅ Database seeded successfully!")
        print("\nDemo bearer tokens (valid 24h):")
        for user in users:
            token = create_access_token({"sub": str(user.id)}, expires_delta=timedelta(hours=24))
            print(f"  {user.email} ({user.role}): {token}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
