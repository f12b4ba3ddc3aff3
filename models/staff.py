"""
Branch staff model for PIN authentication and staff management
"""
import hmac
import uuid
from datetime import datetime
from extensions import db
from utils.security import hash_pin, verify_pin


class BranchStaff(db.Model):
    """Staff member of a single branch"""
    __tablename__ = 'branch_staff'
    __table_args__ = (
        db.UniqueConstraint('branch_id', 'email', name='uq_branch_staff_email'),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    branch_id = db.Column(db.String(36), db.ForeignKey('branches.id'), nullable=False, index=True)

    # Staff info
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=True)

    # Role: 'manager', 'senior_staff' or 'associate'
    role = db.Column(db.String(20), nullable=False, default='associate')

    # Credentials. `pin` is the legacy plain-text column, cleared on migration.
    pin_hash = db.Column(db.String(255), nullable=True)
    pin = db.Column(db.String(4), nullable=True)

    last_active = db.Column(db.DateTime, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    branch = db.relationship('Branch', back_populates='staff')

    def set_pin(self, pin):
        """Hash and set PIN, dropping any legacy plain-text PIN"""
        self.pin_hash = hash_pin(pin)
        self.pin = None

    def check_pin(self, pin):
        """Verify PIN against the hash, or the legacy column if unmigrated"""
        if self.pin_hash:
            return verify_pin(pin, self.pin_hash)
        if self.pin and pin:
            return hmac.compare_digest(self.pin.encode('utf-8'), str(pin).encode('utf-8'))
        return False

    @property
    def has_secure_pin(self):
        return self.pin_hash is not None

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_manager(self):
        return self.role == 'manager'

    def to_public_dict(self):
        """Fields returned by PIN verification"""
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'role': self.role,
            'email': self.email,
            'branch_id': self.branch_id,
        }

    def to_dict(self, include_sensitive=False):
        """Convert to dictionary. PIN material is never included."""
        data = {
            'id': self.id,
            'branch_id': self.branch_id,
            'branch_name': self.branch.name if self.branch else None,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'last_active': self.last_active.isoformat() if self.last_active else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_sensitive:
            data['has_secure_pin'] = self.has_secure_pin
            data['has_legacy_pin'] = self.pin is not None
        return data

    def __repr__(self):
        return f'<BranchStaff {self.full_name} ({self.role})>'
