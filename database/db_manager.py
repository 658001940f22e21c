"""
Database Manager - High-level database operations
Provides business logic layer on top of SQLAlchemy models
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from config.settings import config
from database.models import db, Profile, Mess, Dish, Visit, DailyVisitorCount
from utils.logger import get_logger, log_visit

logger = get_logger(__name__)

MAX_PRICE = Decimal('100000000')


def is_unique_violation(error):
    """
    Check whether an IntegrityError was raised by a unique constraint

    Recognizes the PostgreSQL SQLSTATE, the MySQL error number and the
    SQLite message for the same condition.

    Args:
        error: sqlalchemy.exc.IntegrityError

    Returns:
        True if the insert collided with an existing row
    """
    orig = getattr(error, 'orig', None)
    if orig is None:
        return False

    if getattr(orig, 'pgcode', None) == config.UNIQUE_VIOLATION_SQLSTATE:
        return True
    if getattr(orig, 'sqlstate', None) == config.UNIQUE_VIOLATION_SQLSTATE:
        return True

    args = getattr(orig, 'args', ())
    if args and args[0] == config.UNIQUE_VIOLATION_MYSQL_ERRNO:
        return True

    message = str(orig).lower()
    return 'unique constraint' in message or 'duplicate entry' in message


def parse_price(value):
    """
    Parse a price typed into the dish form

    Args:
        value: String or number

    Returns:
        Decimal rounded to 2 places, or None if the value is not a valid price
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        price = Decimal(str(value).strip())
        if not price.is_finite() or price < 0:
            return None
        price = price.quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError):
        return None

    # Dish.price is Numeric(10, 2)
    if price >= MAX_PRICE:
        return None

    return price


def filter_messes_by_name(messes, query):
    """
    Case-insensitive substring filter on mess name

    Args:
        messes: Iterable of Mess objects
        query: Search text, empty keeps everything

    Returns:
        List of matching messes in their original order
    """
    needle = (query or '').lower()
    return [mess for mess in messes if needle in (mess.name or '').lower()]


class DatabaseManager:
    """Manages all database operations"""

    # ==================== PROFILE OPERATIONS ====================

    def find_profile_by_id(self, profile_id):
        """Find profile by primary key"""
        try:
            return db.session.get(Profile, int(profile_id))
        except Exception as e:
            logger.error(f"Error finding profile by ID: {e}")
            return None

    def find_profile_by_email(self, email):
        """
        Find profile by email address

        Args:
            email: Email (case-insensitive)

        Returns:
            Profile object or None
        """
        try:
            return Profile.query.filter_by(email=email.strip().lower()).first()
        except Exception as e:
            logger.error(f"Error finding profile by email: {e}")
            return None

    def create_profile(self, email, username, password, role):
        """
        Create a new account

        Args:
            email: Login email
            username: Name shown in the header
            password: Plaintext password (stored hashed)
            role: student or mess_owner

        Returns:
            Profile object if successful, None otherwise
        """
        if role not in config.ROLES:
            logger.warning(f"Rejected sign up with unknown role: {role}")
            return None

        try:
            profile = Profile(
                email=email.strip().lower(),
                username=username.strip(),
                role=role
            )
            profile.set_password(password)

            db.session.add(profile)
            db.session.commit()

            logger.info(f"Profile created: {profile.email} ({role})")
            return profile
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating profile: {e}")
            return None

    def authenticate(self, email, password):
        """
        Check credentials

        Returns:
            Profile object if the password matches, None otherwise
        """
        profile = self.find_profile_by_email(email)
        if profile and profile.check_password(password):
            logger.info(f"Profile signed in: {profile.email}")
            return profile

        logger.warning(f"Failed sign in for {email}")
        return None

    # ==================== MESS OPERATIONS ====================

    def get_mess_for_owner(self, owner_id):
        """
        Get the owner's mess

        Raises on database errors so callers can tell "no mess" from "failed"

        Returns:
            Mess object or None
        """
        return Mess.query.filter_by(owner_id=owner_id).first()

    def get_mess(self, mess_id):
        """Get mess by ID"""
        try:
            return db.session.get(Mess, int(mess_id))
        except Exception as e:
            logger.error(f"Error getting mess {mess_id}: {e}")
            return None

    def create_default_mess(self, owner_id):
        """
        Create the owner's mess with default values

        Args:
            owner_id: Profile ID of the mess owner

        Returns:
            Mess object (existing one if the owner already has a mess),
            None on failure
        """
        try:
            existing = self.get_mess_for_owner(owner_id)
            if existing:
                logger.info(f"Owner {owner_id} already has mess {existing.id}")
                return existing

            mess = Mess(owner_id=owner_id, **config.DEFAULT_MESS)
            db.session.add(mess)
            db.session.commit()

            logger.info(f"Mess created for owner {owner_id}: {mess.id}")
            return mess
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating mess: {e}")
            return None

    def update_mess(self, owner_id, name=None, description=None, location=None):
        """
        Update the owner's mess details

        Only fields that are not None are changed. The name cannot be blank.

        Returns:
            Mess object if successful, None otherwise
        """
        try:
            mess = self.get_mess_for_owner(owner_id)
            if not mess:
                logger.warning(f"No mess to update for owner {owner_id}")
                return None

            if name is not None:
                if not name.strip():
                    logger.warning(f"Rejected blank mess name for owner {owner_id}")
                    return None
                mess.name = name.strip()
            if description is not None:
                mess.description = description.strip()
            if location is not None:
                mess.location = location.strip()

            db.session.commit()

            logger.info(f"Mess updated: {mess.id}")
            return mess
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating mess: {e}")
            return None

    def get_messes_with_dishes(self):
        """
        Get every mess with its menu

        Returns:
            List of Mess objects, None on failure
        """
        try:
            return Mess.query.options(selectinload(Mess.dishes)).order_by(Mess.id).all()
        except Exception as e:
            logger.error(f"Error getting messes: {e}")
            return None

    def search_messes(self, query=''):
        """
        Get messes whose name contains the query

        Returns:
            List of Mess objects, None on failure
        """
        messes = self.get_messes_with_dishes()
        if messes is None:
            return None
        return filter_messes_by_name(messes, query)

    # ==================== DISH OPERATIONS ====================

    def get_dishes(self, mess_id):
        """Get all dishes on a mess menu"""
        return Dish.query.filter_by(mess_id=mess_id).order_by(Dish.id).all()

    def get_dish_for_mess(self, dish_id, mess_id):
        """Get a dish only if it belongs to the given mess"""
        try:
            return Dish.query.filter_by(id=int(dish_id), mess_id=mess_id).first()
        except Exception as e:
            logger.error(f"Error getting dish {dish_id}: {e}")
            return None

    def add_dish(self, mess_id, name, price):
        """
        Add a dish to a mess menu

        Args:
            mess_id: Mess ID
            name: Dish name
            price: Decimal price

        Returns:
            Dish object if successful, None otherwise
        """
        try:
            dish = Dish(name=name.strip(), price=price, mess_id=mess_id)
            db.session.add(dish)
            db.session.commit()

            logger.info(f"Dish added to mess {mess_id}: {dish.name}")
            return dish
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error adding dish: {e}")
            return None

    def update_dish(self, dish_id, mess_id, name, price):
        """
        Update a dish on the owner's menu

        Returns:
            Dish object if successful, None if missing or on failure
        """
        try:
            dish = self.get_dish_for_mess(dish_id, mess_id)
            if not dish:
                logger.warning(f"Dish {dish_id} not found in mess {mess_id}")
                return None

            dish.name = name.strip()
            dish.price = price
            db.session.commit()

            logger.info(f"Dish updated: {dish.id}")
            return dish
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating dish: {e}")
            return None

    def delete_dish(self, dish_id, mess_id):
        """
        Delete a dish from the owner's menu

        Returns:
            True if successful, False otherwise
        """
        try:
            dish = self.get_dish_for_mess(dish_id, mess_id)
            if not dish:
                logger.warning(f"Dish {dish_id} not found in mess {mess_id}")
                return False

            db.session.delete(dish)
            db.session.commit()

            logger.info(f"Dish deleted: {dish_id}")
            return True
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error deleting dish: {e}")
            return False

    # ==================== VISIT OPERATIONS ====================

    def record_visit(self, student_id, mess_id, visit_date=None):
        """
        Record that a student is visiting a mess

        Inserts the visit and bumps the mess's daily visitor count in one
        transaction. A second visit to the same mess on the same day hits the
        unique constraint and is reported as already recorded.

        Args:
            student_id: Profile ID of the student
            mess_id: Mess ID
            visit_date: Defaults to today

        Returns:
            One of config.VISIT_RECORDED, VISIT_ALREADY_RECORDED,
            VISIT_MESS_NOT_FOUND, VISIT_ERROR
        """
        visit_date = visit_date or date.today()

        mess = self.get_mess(mess_id)
        if not mess:
            log_visit(student_id, mess_id, config.VISIT_MESS_NOT_FOUND)
            return config.VISIT_MESS_NOT_FOUND

        try:
            visit = Visit(student_id=student_id, mess_id=mess.id, date=visit_date)
            db.session.add(visit)
            db.session.flush()
        except IntegrityError as e:
            db.session.rollback()
            if is_unique_violation(e):
                logger.info(f"Duplicate visit: student {student_id} at mess {mess.id} on {visit_date}")
                log_visit(student_id, mess.id, config.VISIT_ALREADY_RECORDED)
                return config.VISIT_ALREADY_RECORDED
            logger.error(f"Error recording visit: {e}")
            log_visit(student_id, mess.id, config.VISIT_ERROR)
            return config.VISIT_ERROR
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error recording visit: {e}")
            log_visit(student_id, mess.id, config.VISIT_ERROR)
            return config.VISIT_ERROR

        try:
            self._count_visitor(mess.id, visit_date)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating visitor count: {e}")
            log_visit(student_id, mess.id, config.VISIT_ERROR)
            return config.VISIT_ERROR

        logger.info(f"Visit recorded: student {student_id} at mess {mess.id}")
        log_visit(student_id, mess.id, config.VISIT_RECORDED)
        return config.VISIT_RECORDED

    def _increment_daily_count(self, mess_id, visit_date):
        """Add one to the day's counter in a single UPDATE, returns rows changed"""
        return DailyVisitorCount.query.filter_by(
            mess_id=mess_id,
            date=visit_date
        ).update(
            {DailyVisitorCount.visitor_count: DailyVisitorCount.visitor_count + 1},
            synchronize_session=False
        )

    def _count_visitor(self, mess_id, visit_date):
        """
        Bump the mess's visitor count for the day inside the open transaction

        The first visit of the day creates the row. When another request
        creates it first, the insert is undone back to its savepoint and the
        update is run again.
        """
        if self._increment_daily_count(mess_id, visit_date):
            return

        try:
            with db.session.begin_nested():
                db.session.add(DailyVisitorCount(mess_id=mess_id, date=visit_date, visitor_count=1))
                db.session.flush()
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            logger.info(f"Visitor count for mess {mess_id} on {visit_date} created by another request")
            if not self._increment_daily_count(mess_id, visit_date):
                raise

    # ==================== STATISTICS ====================

    def get_visitor_stats(self, mess_id):
        """
        Get visitor statistics for a mess

        Returns:
            dict with today's visitors and the all-time total
        """
        try:
            today_record = DailyVisitorCount.query.filter_by(
                mess_id=mess_id,
                date=date.today()
            ).first()

            total = db.session.query(
                func.coalesce(func.sum(DailyVisitorCount.visitor_count), 0)
            ).filter(DailyVisitorCount.mess_id == mess_id).scalar()

            return {
                'today_visitors': today_record.visitor_count if today_record else 0,
                'total_visitors': int(total or 0)
            }
        except Exception as e:
            logger.error(f"Error fetching stats: {e}")
            # Return zeros instead of failing
            return {
                'today_visitors': 0,
                'total_visitors': 0
            }

    def load_owner_dashboard(self, owner_id):
        """
        Load everything the owner dashboard shows

        Args:
            owner_id: Profile ID of the mess owner

        Returns:
            dict with mess, dishes, stats and total menu price
            (mess is None when the owner has not created one yet),
            None on failure
        """
        try:
            mess = self.get_mess_for_owner(owner_id)
            if not mess:
                return {
                    'mess': None,
                    'dishes': [],
                    'stats': {'today_visitors': 0, 'total_visitors': 0},
                    'total_price': Decimal('0')
                }

            dishes = self.get_dishes(mess.id)
            stats = self.get_visitor_stats(mess.id)

            return {
                'mess': mess,
                'dishes': dishes,
                'stats': stats,
                'total_price': sum((dish.price for dish in dishes), Decimal('0'))
            }
        except Exception as e:
            logger.error(f"Error fetching mess data: {e}")
            return None


# Singleton instance
_db_manager = None

def get_db_manager():
    """Get or create database manager singleton"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
