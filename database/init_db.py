"""
Database initialization script
Run this after creating the database to seed initial data
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app, db
from models import Branch, BranchStaff
from utils.security import validate_pin


DEFAULT_BRANCH_NAME = os.getenv('INIT_BRANCH_NAME', 'FitGym Pro - Main')
DEFAULT_MANAGER_EMAIL = os.getenv('INIT_MANAGER_EMAIL', 'manager@fitgympro.com')
DEFAULT_MANAGER_PIN = os.getenv('INIT_MANAGER_PIN', '2580')


def seed_branch():
    """Create the default branch"""
    print("Creating default branch...")

    branch = Branch.query.filter_by(name=DEFAULT_BRANCH_NAME).first()
    if not branch:
        branch = Branch(
            name=DEFAULT_BRANCH_NAME,
            address='123 Main Street',
            phone='555-0100',
            email='main@fitgympro.com'
        )
        db.session.add(branch)
        db.session.commit()
        print(f"  ✓ Branch '{branch.name}' created")
    else:
        print(f"  - Branch '{branch.name}' already exists")

    return branch


def seed_manager(branch):
    """Create the first manager so staff routes can be used"""
    print("Creating default manager...")

    validation = validate_pin(DEFAULT_MANAGER_PIN)
    if not validation.is_valid:
        raise SystemExit(f"INIT_MANAGER_PIN rejected: {validation.error}")

    if not BranchStaff.query.filter_by(branch_id=branch.id, email=DEFAULT_MANAGER_EMAIL).first():
        manager = BranchStaff(
            branch_id=branch.id,
            first_name='Branch',
            last_name='Manager',
            email=DEFAULT_MANAGER_EMAIL,
            role='manager'
        )
        manager.set_pin(DEFAULT_MANAGER_PIN)
        db.session.add(manager)
        db.session.commit()
        print(f"  ✓ Manager created (id: {manager.id})")
    else:
        print("  - Manager already exists")


def init_db():
    """Initialize database with default data"""
    with app.app_context():
        print("\n" + "="*50)
        print("FitGym Pro - Database Initialization")
        print("="*50 + "\n")

        # Create tables
        print("Creating database tables...")
        db.create_all()
        print("  ✓ Tables created\n")

        # Seed data
        branch = seed_branch()
        print()
        seed_manager(branch)

        print("\n" + "="*50)
        print("Database initialization complete!")
        print("="*50)
        print("\nDefault staff credentials:")
        print(f"  Manager: {DEFAULT_MANAGER_EMAIL} (PIN: {DEFAULT_MANAGER_PIN})")
        print()


if __name__ == '__main__':
    init_db()
