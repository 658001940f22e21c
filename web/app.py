"""
Flask Application - Main web application
Serves the owner and student dashboards and the JSON API
"""

import click
from flask import Flask, request, jsonify, redirect, url_for, flash
from flask_cors import CORS
from flask_login import LoginManager
from config.settings import config
from database.models import init_db
from database.db_manager import get_db_manager
from utils.formatting import format_price
from utils.logger import setup_logging, get_logger

logger = get_logger(__name__)

login_manager = LoginManager()

@login_manager.user_loader
def load_profile(profile_id):
    return get_db_manager().find_profile_by_id(profile_id)

@login_manager.unauthorized_handler
def unauthorized():
    if request.path.startswith('/api/'):
        return jsonify({
            'success': False,
            'error': 'unauthorized',
            'message': 'Sign in required'
        }), 401
    flash({'title': 'Sign In Required', 'description': 'Please sign in to continue'}, 'destructive')
    return redirect(url_for('auth.login'))

def create_app(overrides=None):
    """
    Create and configure Flask application

    Args:
        overrides: Optional dict of Flask config values applied last

    Returns:
        Configured Flask app instance
    """
    # Initialize Flask
    app = Flask(__name__)

    # Configure app
    app.config['SECRET_KEY'] = config.SECRET_KEY
    app.config['SQLALCHEMY_DATABASE_URI'] = config.SQLALCHEMY_DATABASE_URI
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = config.SQLALCHEMY_TRACK_MODIFICATIONS
    app.config['SQLALCHEMY_ECHO'] = config.SQLALCHEMY_ECHO
    if overrides:
        app.config.update(overrides)

    # Enable CORS for the JSON API
    CORS(app, resources={r"/api/*": {"origins": config.CORS_ORIGINS}}, supports_credentials=True)

    # Setup logging
    setup_logging()
    logger.info(f"Starting {config.APP_NAME}")
    logger.info(f"Database: {config.DATABASE_TYPE}")

    # Validate configuration
    try:
        config.validate()
        logger.info("Configuration validated successfully")
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise

    # Initialize database
    init_db(app)
    logger.info("Database initialized")

    # Session handling
    login_manager.init_app(app)

    # Register blueprints
    from web.routes import main_bp, auth_bp, owner_bp, student_bp, api_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(owner_bp, url_prefix='/owner')
    app.register_blueprint(student_bp, url_prefix='/student')
    app.register_blueprint(api_bp, url_prefix='/api')
    logger.info("Routes registered")

    # Template helpers
    app.add_template_filter(format_price, 'price')

    @app.context_processor
    def inject_config():
        return {
            'app_name': config.APP_NAME,
            'currency': config.CURRENCY_SYMBOL
        }

    # CLI commands
    @app.cli.command('seed-data')
    @click.option('--messes', default=5, show_default=True, help='Number of owners with a mess')
    @click.option('--students', default=20, show_default=True, help='Number of student accounts')
    @click.option('--clear', is_flag=True, help='Delete existing data first')
    def seed_data(messes, students, clear):
        """Populate the database with demo messes, menus and students"""
        from database.sample_data import populate_database
        created = populate_database(messes, students, clear_existing=clear)
        click.echo(f"Created {created['messes']} messes, {created['dishes']} dishes "
                   f"and {created['students']} students")

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        logger.warning(f"404 error: {request.path}")
        if request.path.startswith('/api/'):
            return jsonify({'success': False, 'error': 'not_found'}), 404
        return "Page not found", 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"500 error: {error}")
        if request.path.startswith('/api/'):
            return jsonify({'success': False, 'error': 'system_error'}), 500
        return "Internal server error", 500

    logger.info("Flask application created successfully")
    return app


if __name__ == "__main__":
    app = create_app()

    print("\n" + "="*60)
    print(config.APP_NAME.upper())
    print("="*60)
    print(f"\nDatabase: {config.DATABASE_TYPE}")
    print(f"\nStarting server...")
    print(f"Dashboard: http://{config.FLASK_HOST}:{config.FLASK_PORT}/")
    print("\nPress Ctrl+C to stop")
    print("="*60 + "\n")

    app.run(
        host=config.FLASK_HOST,
        port=config.FLASK_PORT,
        debug=config.FLASK_DEBUG
    )
