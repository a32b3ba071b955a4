"""WSGI entry point for Gunicorn."""
import atexit

from pos import create_app
from pos.database import Database

# Create the application instance
app = create_app()

database: Database = app.extensions['database']
atexit.register(database.dispose)

if __name__ == "__main__":
    app.run()
