"""
Main Entry Point - Starts the Smart Mess Menu web server
"""

import sys
import signal
from web.app import create_app
from config.settings import config
from utils.logger import setup_logging, get_logger

# Setup logging first
setup_logging()
logger = get_logger(__name__)

def signal_handler(sig, frame):
    """Handle Ctrl+C gracefully"""
    logger.info("\nShutdown signal received...")
    sys.exit(0)

def start_system():
    """Create the app and run the web server"""
    logger.info("="*60)
    logger.info(config.APP_NAME.upper())
    logger.info("="*60)

    logger.info("Creating Flask application...")
    app = create_app()

    logger.info(f"Database: {config.DATABASE_TYPE}")
    logger.info(f"Dashboard: http://{config.FLASK_HOST}:{config.FLASK_PORT}/")
    logger.info("System ready! Press Ctrl+C to stop")

    # Start Flask server (blocking)
    try:
        app.run(
            host=config.FLASK_HOST,
            port=config.FLASK_PORT,
            debug=config.FLASK_DEBUG,
            use_reloader=False  # Disable reloader to prevent double-initialization
        )
    except KeyboardInterrupt:
        pass

def main():
    """Main function"""
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        start_system()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
