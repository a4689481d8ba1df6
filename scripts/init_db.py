#!/usr/bin/env python3
"""Initialize database tables and the reserved admin account"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from salonbook import create_app
from salonbook.auth import ensure_super_admin
from salonbook.extensions import db

def init_database():
    app = create_app()
    with app.app_context():
        db.create_all()
        admin = ensure_super_admin(db.session)
        db.session.commit()
        print(f"✅ Database tables initialized successfully (admin phone {admin.phone})")

if __name__ == "__main__":
    init_database()
