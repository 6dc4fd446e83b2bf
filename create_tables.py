# create_tables.py
from worktrack.database import init_db, DATABASE_URL

def create_tables():
    """Create all tables and seed the access levels"""
    init_db()
    print(f"✅ All tables created in {DATABASE_URL}")

if __name__ == "__main__":
    create_tables()
