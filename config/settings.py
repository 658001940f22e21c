"""
Settings Module - Centralized configuration management
Loads environment variables and provides application-wide settings
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Config:
    """Application configuration"""

    # Database Configuration
    DATABASE_TYPE = os.getenv('DATABASE_TYPE', 'sqlite')
    DATABASE_PATH = os.getenv('DATABASE_PATH', 'smart_mess.db')

    # MySQL Configuration
    MYSQL_HOST = os.getenv('MYSQL_HOST', 'localhost')
    MYSQL_PORT = int(os.getenv('MYSQL_PORT', 3306))
    MYSQL_USER = os.getenv('MYSQL_USER', 'smart_mess_user')
    MYSQL_PASSWORD = os.getenv('MYSQL_PASSWORD', '')
    MYSQL_DATABASE = os.getenv('MYSQL_DATABASE', 'smart_mess_db')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Generate SQLAlchemy database URI based on type"""
        if self.DATABASE_TYPE == 'mysql':
            return (
                f"mysql+pymysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}"
                f"@{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DATABASE}"
            )
        else:  # SQLite
            return f"sqlite:///{self.DATABASE_PATH}"

    # Flask Configuration
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    FLASK_HOST = os.getenv('FLASK_HOST', '0.0.0.0')
    FLASK_PORT = int(os.getenv('FLASK_PORT', 5000))
    FLASK_DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'

    # SQLAlchemy Settings
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False  # Disable SQL query logging in terminal

    # CORS (JSON API only)
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Logging Configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE_PATH = os.getenv('LOG_FILE_PATH', 'logs/')
    LOG_RETENTION_DAYS = int(os.getenv('LOG_RETENTION_DAYS', 30))

    # Branding
    APP_NAME = os.getenv('APP_NAME', 'Smart Mess Menu')
    CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '₹')

    # Roles
    ROLE_STUDENT = 'student'
    ROLE_MESS_OWNER = 'mess_owner'
    ROLES = [ROLE_STUDENT, ROLE_MESS_OWNER]

    # Business Rules
    # Values used when an owner creates their mess from the dashboard
    DEFAULT_MESS = {
        'name': 'My Mess',
        'description': 'A great place to eat',
        'location': 'Campus'
    }

    # Visit Statuses
    VISIT_RECORDED = 'Recorded'
    VISIT_ALREADY_RECORDED = 'AlreadyVisited'
    VISIT_MESS_NOT_FOUND = 'MessNotFound'
    VISIT_ERROR = 'Error'

    # Conflict codes reported by the database for unique constraint violations
    UNIQUE_VIOLATION_SQLSTATE = '23505'  # PostgreSQL
    UNIQUE_VIOLATION_MYSQL_ERRNO = 1062

    # Toast messages (title, description)
    MESSAGES = {
        'LOAD_MESS_FAILED': ('Error', 'Failed to load mess data'),
        'MESS_CREATED': ('Success', 'Mess created successfully!'),
        'CREATE_MESS_FAILED': ('Error', 'Failed to create mess'),
        'MESS_UPDATED': ('Success', 'Mess details updated successfully!'),
        'UPDATE_MESS_FAILED': ('Error', 'Failed to update mess'),
        'DISH_ADDED': ('Success', 'Dish added successfully!'),
        'DISH_UPDATED': ('Success', 'Dish updated successfully!'),
        'SAVE_DISH_FAILED': ('Error', 'Failed to save dish'),
        'DISH_DELETED': ('Success', 'Dish deleted successfully!'),
        'DELETE_DISH_FAILED': ('Error', 'Failed to delete dish'),
        'INVALID_DISH': ('Error', 'Enter a dish name and a valid price'),
        'LOAD_MESSES_FAILED': ('Error', 'Failed to load messes'),
        'VISIT_RECORDED': ('Success', 'Your visit has been recorded!'),
        'ALREADY_VISITED': ('Already Visited', "You've already marked this mess for today!"),
        'VISIT_FAILED': ('Error', 'Failed to record your visit'),
        'MESS_NOT_FOUND': ('Error', 'Mess not found'),
        'SIGNED_UP': ('Welcome', 'Your account has been created!'),
        'SIGN_UP_FAILED': ('Error', 'Failed to create account'),
        'EMAIL_TAKEN': ('Error', 'An account with this email already exists'),
        'INVALID_SIGN_UP': ('Error', 'Email, username, password and role are required'),
        'INVALID_CREDENTIALS': ('Error', 'Invalid email or password'),
        'SIGNED_OUT': ('Signed Out', 'You have been signed out'),
        'WRONG_ROLE': ('Access Denied', 'This page is not available for your account'),
    }

    def validate(self):
        """Validate critical configuration settings"""
        errors = []

        # Check secret key
        if not self.SECRET_KEY:
            errors.append("FLASK_SECRET_KEY is not set in environment variables")

        # Check database configuration
        if self.DATABASE_TYPE not in ['sqlite', 'mysql']:
            errors.append(f"Invalid DATABASE_TYPE: {self.DATABASE_TYPE}")

        if self.DATABASE_TYPE == 'mysql' and not self.MYSQL_PASSWORD:
            errors.append("MYSQL_PASSWORD is required for MySQL database")

        if self.LOG_LEVEL.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            errors.append(f"Invalid LOG_LEVEL: {self.LOG_LEVEL}")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(errors))

        return True


# Singleton instance
config = Config()


if __name__ == "__main__":
    # Test configuration
    print("=== Smart Mess Menu Configuration ===\n")

    print(f"Database Type: {config.DATABASE_TYPE}")
    print(f"Database URI: {config.SQLALCHEMY_DATABASE_URI}")
    print(f"\nFlask Host: {config.FLASK_HOST}:{config.FLASK_PORT}")
    print(f"Debug Mode: {config.FLASK_DEBUG}")
    print(f"\nRoles: {config.ROLES}")
    print(f"Default Mess: {config.DEFAULT_MESS}")

    print("\nValidating configuration...")
    try:
        config.validate()
        print("✅ Configuration valid!")
    except ValueError as e:
        print(f"❌ Configuration errors:\n{e}")
