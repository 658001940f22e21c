"""
Sample Data Generator - Creates demo accounts, messes and menus
Used for development and demos through `flask seed-data`
"""

import random
from datetime import date, timedelta
from decimal import Decimal
from database.models import db, Profile, Mess, Dish, Visit, DailyVisitorCount
from config.settings import config
from utils.logger import get_logger

logger = get_logger(__name__)

# Every demo account shares this password
SAMPLE_PASSWORD = 'password123'

# Sample data pools
FIRST_NAMES = [
    "Aarav", "Priya", "Rohan", "Ananya", "Vikram", "Sneha", "Arjun", "Kavya",
    "Rahul", "Meera", "Karan", "Isha", "Aditya", "Pooja", "Siddharth", "Neha",
    "Nikhil", "Divya", "Manish", "Riya"
]

MESS_NAMES = [
    "Annapurna Mess", "Green Leaf Canteen", "Hostel 4 Dining Hall", "Spice Route",
    "Campus Kitchen", "Maa Ki Rasoi", "South Corner", "Night Owl Mess",
    "Punjabi Dhaba", "Tiffin Junction"
]

LOCATIONS = [
    "Near Main Gate", "Hostel Block A", "Library Road", "Sports Complex",
    "Academic Block 2", "Girls Hostel Lane", ""
]

DESCRIPTIONS = [
    "Home-style North Indian thali every day",
    "Fresh vegetarian meals at student prices",
    "South Indian breakfast and unlimited rice",
    "Open late for hostel residents",
    ""
]

DISHES = [
    ("Dal Tadka", 40), ("Paneer Butter Masala", 90), ("Jeera Rice", 35),
    ("Butter Roti", 10), ("Masala Dosa", 50), ("Idli Sambar", 30),
    ("Veg Biryani", 80), ("Chole Bhature", 60), ("Aloo Paratha", 35),
    ("Curd Rice", 30), ("Gulab Jamun", 20), ("Masala Chai", 10),
    ("Rajma Chawal", 55), ("Poha", 25)
]

def generate_mess(owner, index):
    """
    Generate a mess for an owner with a random menu

    Args:
        owner: Profile with the mess_owner role
        index: Position used to pick a unique name

    Returns:
        Mess object (not yet committed)
    """
    mess = Mess(
        name=MESS_NAMES[index % len(MESS_NAMES)] + ('' if index < len(MESS_NAMES) else f" {index + 1}"),
        description=random.choice(DESCRIPTIONS),
        location=random.choice(LOCATIONS),
        owner=owner
    )

    for name, price in random.sample(DISHES, k=random.randint(0, 6)):
        mess.dishes.append(Dish(name=name, price=Decimal(price)))

    return mess

def generate_visitor_history(mess, days=14):
    """Generate a visitor tally for the last few days"""
    today = date.today()
    return [
        DailyVisitorCount(mess=mess, date=today - timedelta(days=offset),
                          visitor_count=random.randint(5, 120))
        for offset in range(1, days + 1)
    ]

def populate_database(mess_count=5, student_count=20, clear_existing=False):
    """
    Populate database with sample owners, messes and students

    Args:
        mess_count: Number of owners (each gets one mess)
        student_count: Number of students to generate
        clear_existing: If True, delete existing data first

    Returns:
        dict with number of messes, dishes and students created
    """
    created = {'messes': 0, 'dishes': 0, 'students': 0}

    try:
        if clear_existing:
            logger.warning("Clearing existing data...")
            Visit.query.delete()
            DailyVisitorCount.query.delete()
            Dish.query.delete()
            Mess.query.delete()
            Profile.query.delete()
            db.session.commit()
            logger.info("Existing data cleared")

        offset = Profile.query.count()

        logger.info(f"Generating {mess_count} sample messes...")
        for i in range(mess_count):
            owner = Profile(
                email=f"owner{offset + i + 1}@campus.test",
                username=f"{random.choice(FIRST_NAMES)} (Owner)",
                role=config.ROLE_MESS_OWNER
            )
            owner.set_password(SAMPLE_PASSWORD)

            mess = generate_mess(owner, offset + i)
            db.session.add(owner)
            db.session.add(mess)
            db.session.add_all(generate_visitor_history(mess))

            created['messes'] += 1
            created['dishes'] += len(mess.dishes)

        logger.info(f"Generating {student_count} sample students...")
        for i in range(student_count):
            student = Profile(
                email=f"student{offset + mess_count + i + 1}@campus.test",
                username=random.choice(FIRST_NAMES),
                role=config.ROLE_STUDENT
            )
            student.set_password(SAMPLE_PASSWORD)
            db.session.add(student)
            created['students'] += 1

        db.session.commit()
        logger.info(f"✅ Sample data created: {created}")
        return created

    except Exception as e:
        db.session.rollback()
        logger.error(f"Error populating database: {e}")
        return {'messes': 0, 'dishes': 0, 'students': 0}


if __name__ == "__main__":
    print("=== Sample Data Generator ===")
    print("This script generates demo owners, messes and students.\n")

    # Needs a Flask app context
    print("To use this script:")
    print("  flask --app web.app:create_app seed-data --messes 5 --students 20")
    print(f"\nAll demo accounts use the password: {SAMPLE_PASSWORD}")
