"""
Staff routes - PIN verification and branch staff management
"""
import re
from datetime import datetime
from flask import Blueprint, current_app, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from extensions import db
from models.branch import Branch
from models.staff import BranchStaff
from utils.activity_logger import log_activity
from utils.rbac import STAFF_ROLES, require_manager
from utils.security import validate_pin
from utils.staff_auth import StaffAuthUnavailable, remote_verifier_config, verify_pin_remote
from .auth import create_staff_tokens

staff_bp = Blueprint('staff', __name__)


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match((value or "").strip()))


def _tracker():
    return current_app.extensions['pin_attempt_tracker']


def _error(error, status, **extra):
    body = {'status': 'error', 'error': error}
    body.update(extra)
    return jsonify(body), status


def _server_error(message, e):
    current_app.logger.exception('%s: %s', message, e)
    return _error(message, 500, message=str(e))


@staff_bp.route('/branch/<branch_id>', methods=['GET'])
def get_branch_staff(branch_id):
    """Public staff list for the PIN picker of one branch"""
    try:
        staff = (
            BranchStaff.query
            .filter_by(branch_id=branch_id)
            .order_by(BranchStaff.role, BranchStaff.first_name)
            .all()
        )
        return jsonify({
            'status': 'success',
            'data': [
                {
                    'id': s.id,
                    'first_name': s.first_name,
                    'last_name': s.last_name,
                    'role': s.role,
                    'email': s.email,
                    'phone': s.phone,
                    'last_active': s.last_active.isoformat() if s.last_active else None,
                }
                for s in staff
            ]
        }), 200
    except Exception as e:
        return _server_error('Failed to fetch staff', e)


@staff_bp.route('/verify-pin', methods=['POST'])
def verify_staff_pin():
    """
    Verify a staff PIN, guarded by the attempt tracker.

    Request body:
    {
        "staffId": "string",
        "pin": "string"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        staff_id = str(data.get('staffId') or '').strip()
        pin = data.get('pin')

        if not staff_id or not pin:
            return _error('Staff ID and PIN are required', 400)
        pin = str(pin)

        tracker = _tracker()
        attempt_check = tracker.check_attempts(staff_id)
        if not attempt_check.allowed:
            current_app.logger.warning('PIN attempt blocked for staff %s - rate limited', staff_id)
            return _error(
                'Too many failed attempts',
                429,
                message='Account temporarily locked due to too many failed attempts',
                lockedUntil=attempt_check.locked_until.isoformat(),
            )

        remote = remote_verifier_config(current_app.config)
        if remote:
            url, key, timeout = remote
            try:
                result = verify_pin_remote(url, key, staff_id=staff_id, pin=pin, timeout=timeout)
            except StaffAuthUnavailable as e:
                current_app.logger.warning('Staff-auth function failed, using direct database check: %s', e)
            else:
                return _verification_response(staff_id, result['isValid'], result['staff'], result['error'])

        staff = db.session.get(BranchStaff, staff_id)
        if not staff:
            return _verification_response(staff_id, False, None, 'Staff not found')

        if not staff.pin_hash and staff.pin:
            current_app.logger.warning(
                'Using legacy PIN verification for staff %s - migrate to a hashed PIN', staff_id
            )

        is_valid = staff.check_pin(pin)
        if is_valid:
            staff.last_active = datetime.now()
            db.session.commit()

        return _verification_response(
            staff_id,
            is_valid,
            staff.to_public_dict() if is_valid else None,
            None if is_valid else 'Invalid PIN',
        )

    except Exception as e:
        db.session.rollback()
        return _server_error('Internal server error', e)


def _verification_response(staff_id, is_valid, staff_data, error):
    """Update the tracker and audit trail, then build the 200 response."""
    tracker = _tracker()
    body = {
        'status': 'success',
        'isValid': bool(is_valid),
        'staff': staff_data if is_valid else None,
        'error': None if is_valid else (error or 'Invalid PIN'),
    }

    if is_valid:
        tracker.reset_attempts(staff_id)
        current_app.logger.info('Successful PIN verification for staff %s', staff_id)
        if isinstance(staff_data, dict):
            body.update(create_staff_tokens(staff_id, staff_data))
        log_activity(staff_id=staff_id, action='pin_verified', entity_type='staff', entity_id=staff_id)
    else:
        tracker.record_failed_attempt(staff_id)
        current_app.logger.info('Failed PIN attempt for staff %s', staff_id)
        body['remainingAttempts'] = tracker.check_attempts(staff_id).remaining_attempts
        log_activity(
            staff_id=None,
            action='pin_failed',
            entity_type='staff',
            entity_id=staff_id,
            details={'reason': body['error']},
        )

    return jsonify(body), 200


@staff_bp.route('/', methods=['POST'])
@jwt_required()
@require_manager
def create_staff():
    """Create a staff member with a hashed PIN"""
    try:
        data = request.get_json(silent=True) or {}

        required = ['branch_id', 'first_name', 'last_name', 'email', 'role', 'pin']
        missing = [field for field in required if not data.get(field)]
        if missing:
            return _error(f"Missing required fields: {', '.join(missing)}", 400)

        pin_validation = validate_pin(str(data['pin']))
        if not pin_validation.is_valid:
            return _error(pin_validation.error, 400)

        email = data['email'].strip()
        if not _is_valid_email(email):
            return _error('Invalid email format', 400)

        role = data['role']
        if role not in STAFF_ROLES:
            return _error(f"Invalid role. Must be one of: {', '.join(STAFF_ROLES)}", 400)

        if BranchStaff.query.filter_by(branch_id=data['branch_id'], email=email).first():
            return _error('Staff member with this email already exists in this branch', 409)

        if not db.session.get(Branch, data['branch_id']):
            return _error('Branch not found', 404)

        staff = BranchStaff(
            branch_id=data['branch_id'],
            first_name=data['first_name'].strip(),
            last_name=data['last_name'].strip(),
            email=email,
            phone=data.get('phone') or None,
            role=role,
        )
        staff.set_pin(str(data['pin']))

        db.session.add(staff)
        db.session.commit()

        current_app.logger.info('Staff member created: %s', staff.id)
        log_activity(
            staff_id=get_jwt_identity(),
            action='staff_created',
            entity_type='staff',
            entity_id=staff.id,
        )

        return jsonify({
            'status': 'success',
            'message': 'Staff member created successfully',
            'data': staff.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        return _server_error('Failed to create staff member', e)


@staff_bp.route('/', methods=['GET'])
@jwt_required()
@require_manager
def get_all_staff():
    """Get all staff across branches (manager only)"""
    try:
        staff = BranchStaff.query.order_by(BranchStaff.created_at.desc()).all()
        return jsonify({
            'status': 'success',
            'data': [s.to_dict() for s in staff]
        }), 200
    except Exception as e:
        return _server_error('Failed to fetch staff', e)


@staff_bp.route('/<staff_id>', methods=['GET'])
@jwt_required()
def get_staff(staff_id):
    """Get a single staff member (no PIN data)"""
    try:
        staff = db.session.get(BranchStaff, staff_id)
        if not staff:
            return _error('Staff member not found', 404)
        return jsonify({
            'status': 'success',
            'data': staff.to_dict()
        }), 200
    except Exception as e:
        return _server_error('Internal server error', e)


@staff_bp.route('/<staff_id>', methods=['PUT'])
@jwt_required()
@require_manager
def update_staff(staff_id):
    """Update staff member; a new PIN is validated and hashed"""
    try:
        staff = db.session.get(BranchStaff, staff_id)
        if not staff:
            return _error('Staff member not found', 404)

        data = request.get_json(silent=True) or {}
        pin_changed = False

        if data.get('first_name'):
            staff.first_name = data['first_name'].strip()
        if data.get('last_name'):
            staff.last_name = data['last_name'].strip()
        if data.get('email'):
            email = data['email'].strip()
            if not _is_valid_email(email):
                return _error('Invalid email format', 400)
            duplicate = (
                BranchStaff.query
                .filter_by(branch_id=staff.branch_id, email=email)
                .filter(BranchStaff.id != staff.id)
                .first()
            )
            if duplicate:
                return _error('Staff member with this email already exists in this branch', 409)
            staff.email = email
        if 'phone' in data:
            staff.phone = data['phone'] or None
        if data.get('role'):
            if data['role'] not in STAFF_ROLES:
                return _error('Invalid role', 400)
            staff.role = data['role']
        if data.get('pin'):
            pin_validation = validate_pin(str(data['pin']))
            if not pin_validation.is_valid:
                return _error(pin_validation.error, 400)
            staff.set_pin(str(data['pin']))
            pin_changed = True

        db.session.commit()

        if pin_changed:
            _tracker().reset_attempts(staff_id)
        log_activity(
            staff_id=get_jwt_identity(),
            action='staff_updated',
            entity_type='staff',
            entity_id=staff_id,
            details={'pin_changed': pin_changed},
        )

        return jsonify({
            'status': 'success',
            'message': 'Staff member updated successfully',
            'data': staff.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        return _server_error('Failed to update staff member', e)


@staff_bp.route('/<staff_id>', methods=['DELETE'])
@jwt_required()
@require_manager
def delete_staff(staff_id):
    """Delete staff member, keeping at least one manager per branch"""
    try:
        staff = db.session.get(BranchStaff, staff_id)
        if not staff:
            return _error('Staff member not found', 404)

        if staff.is_manager:
            managers = BranchStaff.query.filter_by(branch_id=staff.branch_id, role='manager').count()
            if managers <= 1:
                return _error('Cannot delete the last manager in the branch', 400)

        name = staff.full_name
        db.session.delete(staff)
        db.session.commit()

        _tracker().reset_attempts(staff_id)
        current_app.logger.info('Staff member deleted: %s', staff_id)
        log_activity(
            staff_id=get_jwt_identity(),
            action='staff_deleted',
            entity_type='staff',
            entity_id=staff_id,
            details={'name': name},
        )

        return jsonify({
            'status': 'success',
            'message': f'Staff member {name} deleted successfully'
        }), 200

    except Exception as e:
        db.session.rollback()
        return _server_error('Failed to delete staff member', e)


@staff_bp.route('/migrate-pin/<staff_id>', methods=['POST'])
@jwt_required()
@require_manager
def migrate_pin(staff_id):
    """Replace a legacy plain-text PIN with a hashed one"""
    try:
        data = request.get_json(silent=True) or {}
        pin = data.get('pin')
        if not pin:
            return _error('PIN is required for migration', 400)

        pin_validation = validate_pin(str(pin))
        if not pin_validation.is_valid:
            return _error(pin_validation.error, 400)

        staff = db.session.get(BranchStaff, staff_id)
        if not staff:
            return _error('Staff member not found', 404)

        had_legacy_pin = staff.pin is not None
        staff.set_pin(str(pin))
        db.session.commit()

        _tracker().reset_attempts(staff_id)
        log_activity(
            staff_id=get_jwt_identity(),
            action='pin_migrated',
            entity_type='staff',
            entity_id=staff_id,
            details={'had_legacy_pin': had_legacy_pin},
        )

        return jsonify({
            'status': 'success',
            'message': f'PIN migrated to secure hash for {staff.full_name}',
            'data': staff.to_dict(include_sensitive=True)
        }), 200

    except Exception as e:
        db.session.rollback()
        return _server_error('Failed to migrate PIN', e)
