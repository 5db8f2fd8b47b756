"""
Idempotent startup procedures

Run from the application lifespan; each one is safe to call on every boot.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .auth import hash_password
from .config import ADMIN_EMAIL, ADMIN_NAME, ADMIN_PASSWORD, ADMIN_PHONE
from .domain.auth.otp_service import OTPService
from .models import Service, User

logger = logging.getLogger(__name__)

SEED_SERVICES_DATA = [
    {
        "name": "House Cleaning",
        "title": "Professional House Cleaning",
        "description": "Complete home cleaning service including dusting, vacuuming, and sanitizing.",
        "category": "cleaning",
        "provider": "Sarah Johnson",
        "price_min": 70,
        "price_max": 100,
        "duration_min": 120,
        "duration_max": 180,
        "location": "Downtown",
        "image": "https://images.pexels.com/photos/4239037/pexels-photo-4239037.jpeg?auto=compress&cs=tinysrgb&w=300",
        "icon": "home",
        "requirements": ["Access to all rooms", "No pets in the house during cleaning"],
        "includes": ["Vacuuming", "Mopping", "Bathroom sanitization"],
        "popularity": 90,
        "average_rating": 4.9,
        "total_reviews": 156,
    },
    {
        "name": "Plumbing Repair",
        "title": "Emergency Plumbing Repair",
        "description": "Fast and reliable plumbing repairs for leaks, clogs, and installations.",
        "category": "plumbing",
        "provider": "Mike Wilson",
        "price_min": 100,
        "price_max": 130,
        "duration_min": 60,
        "duration_max": 120,
        "location": "Midtown",
        "image": "https://images.pexels.com/photos/8553854/pexels-photo-8553854.jpeg?auto=compress&cs=tinysrgb&w=300",
        "icon": "droplets",
        "requirements": ["Shut off water supply"],
        "includes": ["Leak repair", "Clog removal", "Pipe installation"],
        "popularity": 85,
        "average_rating": 4.8,
        "total_reviews": 203,
    },
    {
        "name": "Electrical Work",
        "title": "Electrical Installation & Repair",
        "description": "Licensed electrician for all your electrical needs and safety inspections.",
        "category": "electrical",
        "provider": "Alex Rodriguez",
        "price_min": 90,
        "price_max": 110,
        "duration_min": 60,
        "duration_max": 180,
        "location": "Uptown",
        "image": "https://images.pexels.com/photos/257736/pexels-photo-257736.jpeg?auto=compress&cs=tinysrgb&w=300",
        "icon": "zap",
        "requirements": ["Turn off power supply to the work area"],
        "includes": ["Wiring", "Switch replacement", "Electrical panel check"],
        "popularity": 80,
        "average_rating": 4.7,
        "total_reviews": 89,
    },
    {
        "name": "Gardening Services",
        "title": "Garden Maintenance & Landscaping",
        "description": "Professional gardening services including lawn care and plant maintenance.",
        "category": "gardening",
        "provider": "Emma Green",
        "price_min": 50,
        "price_max": 70,
        "duration_min": 120,
        "duration_max": 240,
        "location": "Suburbs",
        "image": "https://images.pexels.com/photos/1301856/pexels-photo-1301856.jpeg?auto=compress&cs=tinysrgb&w=300",
        "icon": "scissors",
        "requirements": ["Access to outdoor water supply"],
        "includes": ["Lawn mowing", "Weeding", "Pruning"],
        "popularity": 92,
        "average_rating": 4.9,
        "total_reviews": 134,
    },
    {
        "name": "Chef Service",
        "title": "Personal Chef Services",
        "description": "Gourmet meal preparation and cooking services for special occasions.",
        "category": "cooking",
        "provider": "Chef David Martinez",
        "price_min": 140,
        "price_max": 160,
        "duration_min": 180,
        "duration_max": 240,
        "location": "Downtown",
        "image": "https://images.pexels.com/photos/887827/pexels-photo-887827.jpeg?auto=compress&cs=tinysrgb&w=300",
        "icon": "chef-hat",
        "requirements": ["Clean kitchen", "Access to basic utensils"],
        "includes": ["Menu planning", "Cooking", "Cleaning after meal"],
        "popularity": 78,
        "average_rating": 4.8,
        "total_reviews": 78,
    },
    {
        "name": "Handyman",
        "title": "General Handyman Services",
        "description": "Fix-it services, furniture assembly, and general home repairs.",
        "category": "handyman",
        "provider": "Tom Builder",
        "price_min": 70,
        "price_max": 90,
        "duration_min": 120,
        "duration_max": 180,
        "location": "Citywide",
        "image": "https://images.pexels.com/photos/1249611/pexels-photo-1249611.jpeg?auto=compress&cs=tinysrgb&w=300",
        "icon": "wrench",
        "requirements": ["Access to the area needing repair"],
        "includes": ["Wall fixing", "Furniture assembly", "TV mounting"],
        "popularity": 88,
        "average_rating": 4.6,
        "total_reviews": 167,
    },
]


def ensure_admin(
    db: Session,
    email: Optional[str] = ADMIN_EMAIL,
    password: Optional[str] = ADMIN_PASSWORD,
    name: str = ADMIN_NAME,
    phone: str = ADMIN_PHONE,
) -> Optional[User]:
    """Create the admin account from configuration unless an account with that email exists"""
    if not email or not password:
        logger.warning("⚠️ ADMIN_EMAIL/ADMIN_PASSWORD not set - skipping admin bootstrap")
        return None

    email = email.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        logger.info("✅ Admin user already exists")
        return existing

    admin = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        phone=phone,
        role="admin",
        is_email_verified=True,
        is_active=True,
    )
    db.add(admin)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(admin)
    logger.info(f"✅ Admin user created: {admin.email}")
    return admin


def seed_services(db: Session, services: Optional[list[dict]] = None) -> int:
    """Insert the starter catalog when the services table is empty; returns rows inserted"""
    if db.query(Service.id).first() is not None:
        logger.info("ℹ️ Services already exist. Skipping seeding.")
        return 0

    rows = [Service(is_active=True, **data) for data in (services or SEED_SERVICES_DATA)]
    db.add_all(rows)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"✅ Seeded {len(rows)} services")
    return len(rows)


def purge_expired_otps(db: Session) -> int:
    removed = OTPService(db).purge_expired()
    db.commit()
    return removed
