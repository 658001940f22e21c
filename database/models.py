"""
Database Models - SQLAlchemy ORM models for all database tables
Supports both SQLite and MySQL through SQLAlchemy
"""

from datetime import datetime, date
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from config.settings import config

db = SQLAlchemy()

class Profile(UserMixin, db.Model):
    """
    Signed-in user of the dashboard
    Either a student or a mess owner
    """
    __tablename__ = 'profiles'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), unique=True, nullable=False)
    username = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # student, mess_owner
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    mess = db.relationship('Mess', backref='owner', uselist=False)
    visits = db.relationship('Visit', backref='student', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Profile {self.email} ({self.role})>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_mess_owner(self):
        return self.role == config.ROLE_MESS_OWNER

    @property
    def is_student(self):
        return self.role == config.ROLE_STUDENT

    @property
    def role_label(self):
        """Role as shown in the header, e.g. 'mess owner'"""
        return self.role.replace('_', ' ')

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'role': self.role,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class Mess(db.Model):
    """
    Campus dining hall
    Each owner has at most one mess
    """
    __tablename__ = 'messes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    location = db.Column(db.String(200))
    owner_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    dishes = db.relationship('Dish', backref='mess', lazy=True, cascade='all, delete-orphan',
                             order_by='Dish.id')
    visits = db.relationship('Visit', backref='mess', lazy=True, cascade='all, delete-orphan')
    daily_visitors = db.relationship('DailyVisitorCount', backref='mess', lazy=True,
                                     cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Mess {self.id} - {self.name}>"

    @property
    def total_price(self):
        """Sum of all dish prices on the menu"""
        return sum((dish.price for dish in self.dishes), 0)

    def to_dict(self, include_dishes=False):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'location': self.location,
            'owner_id': self.owner_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

        if include_dishes:
            data['dishes'] = [dish.to_dict() for dish in self.dishes]
            data['total_price'] = float(self.total_price)

        return data


class Dish(db.Model):
    """Menu item belonging to one mess"""
    __tablename__ = 'dishes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    mess_id = db.Column(db.Integer, db.ForeignKey('messes.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Dish {self.id} - {self.name}>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': float(self.price),
            'mess_id': self.mess_id
        }


class Visit(db.Model):
    """
    A student's intent to eat at a mess on a given day
    """
    __tablename__ = 'visits'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False)
    mess_id = db.Column(db.Integer, db.ForeignKey('messes.id'), nullable=False)
    date = db.Column(db.Date, nullable=False, default=date.today)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Unique constraint: one visit per student per mess per day
    __table_args__ = (
        db.UniqueConstraint('student_id', 'mess_id', 'date', name='unique_student_mess_date'),
    )

    def __repr__(self):
        return f"<Visit {self.student_id} -> {self.mess_id} on {self.date}>"

    def to_dict(self):
        return {
            'id': self.id,
            'student_id': self.student_id,
            'mess_id': self.mess_id,
            'date': self.date.isoformat(),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class DailyVisitorCount(db.Model):
    """
    Visitor tally per mess per day
    Incremented whenever a visit is recorded
    """
    __tablename__ = 'daily_visitors'

    id = db.Column(db.Integer, primary_key=True)
    mess_id = db.Column(db.Integer, db.ForeignKey('messes.id'), nullable=False)
    date = db.Column(db.Date, nullable=False, default=date.today)
    visitor_count = db.Column(db.Integer, nullable=False, default=0)

    # Unique constraint: one record per mess per day
    __table_args__ = (
        db.UniqueConstraint('mess_id', 'date', name='unique_mess_date'),
    )

    def __repr__(self):
        return f"<DailyVisitorCount {self.mess_id} - {self.date}: {self.visitor_count}>"

    def to_dict(self):
        return {
            'mess_id': self.mess_id,
            'date': self.date.isoformat(),
            'visitor_count': self.visitor_count
        }


def init_db(app):
    """Initialize database with Flask app"""
    db.init_app(app)
    with app.app_context():
        db.create_all()
    return db
