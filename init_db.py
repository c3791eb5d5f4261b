#!/usr/bin/env python
"""Create the HomePro database tables.

Run once before starting the server against a fresh database.

Usage:
    python init_db.py
"""

import os
import sys
from homepro import create_app, db

TABLES = [
    ("users", "Customers and helpers"),
    ("help_requests", "Repair help requests and their lifecycle"),
    ("sessions", "Live AR sessions"),
    ("payments", "Pre-authorized session payments"),
    ("notifications", "In-app notifications"),
    ("system_tokens", "Cached vendor access tokens"),
]


def init_database():
    config_name = os.getenv('FLASK_ENV', 'development')
    app = create_app(config_name)

    print(f"\nDatabase initialization for {config_name.upper()}")
    print(f"Database URI: {app.config['SQLALCHEMY_DATABASE_URI']}\n")

    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            print(f"Error creating database: {type(e).__name__}: {e}\n")
            return False

    print("Created tables:")
    for table_name, description in TABLES:
        print(f"  {table_name:<20} - {description}")
    print("\nNext: python wsgi.py\n")
    return True


if __name__ == '__main__':
    success = init_database()
    sys.exit(0 if success else 1)
