"""
Branch model
"""
import uuid
from datetime import datetime
from extensions import db


def _new_id():
    return str(uuid.uuid4())


class Branch(db.Model):
    """A gym location; staff belong to exactly one branch"""
    __tablename__ = 'branches'
    
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(100), nullable=False, index=True)
    address = db.Column(db.String(500), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(100), nullable=True)
    
    # Status
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)
    
    # Relationships
    staff = db.relationship('BranchStaff', back_populates='branch', lazy='dynamic')
    
    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
    
    def __repr__(self):
        return f'<Branch {self.name}>'
