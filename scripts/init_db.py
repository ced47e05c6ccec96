#!/usr/bin/env python3
"""
Initialize the ledger database.

Run this script to create the categories, keywords and transactions tables.

Usage:
    python scripts/init_db.py [path/to/ledger.db]
"""
import sys

from spend_sorter.database.connection import DatabaseConfig, DatabaseManager

def main():
    """Initialize the database."""

    config = DatabaseConfig(sys.argv[1]) if len(sys.argv) > 1 else DatabaseConfig()
    print(f"Initializing database at: {config.db_path}")

    with DatabaseManager(config) as db:
        version = db.initialize()

    if version:
        print("✓ Database initialized successfully!")
        print(f"  Schema version: {version.version}")
        print(f"  Description: {version.description}")
    else:
        print("✗ Database initialization may have failed")

if __name__ == "__main__":
    main()
