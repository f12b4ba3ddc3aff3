"""
Database models package
"""
from .branch import Branch
from .staff import BranchStaff
from .activity_log import ActivityLog

__all__ = [
    'Branch',
    'BranchStaff',
    'ActivityLog'
]
