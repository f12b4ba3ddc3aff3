"""
Authentication routes - staff session tokens issued after PIN verification
"""
from flask import Blueprint, jsonify
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
    get_jwt
)
from extensions import db
from models.staff import BranchStaff
from utils.activity_logger import log_activity

auth_bp = Blueprint('auth', __name__)


def _staff_claims(staff_data):
    first = staff_data.get('first_name') or ''
    last = staff_data.get('last_name') or ''
    return {
        'role': staff_data.get('role'),
        'branch_id': staff_data.get('branch_id'),
        'full_name': f"{first} {last}".strip(),
    }


def create_staff_tokens(staff_id, staff_data):
    """Access and refresh tokens for a verified staff member"""
    return {
        'access_token': create_access_token(
            identity=str(staff_id),
            additional_claims=_staff_claims(staff_data),
        ),
        'refresh_token': create_refresh_token(identity=str(staff_id)),
    }


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_staff():
    """Get the staff member behind the current token"""
    try:
        staff = db.session.get(BranchStaff, get_jwt_identity())

        if not staff:
            return jsonify({
                'status': 'error',
                'error': 'Staff member not found'
            }), 404

        return jsonify({
            'status': 'success',
            'data': staff.to_dict(include_sensitive=True)
        }), 200

    except Exception as e:
        return jsonify({
            'status': 'error',
            'error': 'Failed to get staff member',
            'message': str(e)
        }), 500


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Refresh access token"""
    try:
        staff = db.session.get(BranchStaff, get_jwt_identity())

        if not staff:
            return jsonify({
                'status': 'error',
                'error': 'Staff member not found'
            }), 404

        access_token = create_access_token(
            identity=str(staff.id),
            additional_claims=_staff_claims(staff.to_public_dict()),
        )

        return jsonify({
            'status': 'success',
            'data': {
                'access_token': access_token
            }
        }), 200

    except Exception as e:
        return jsonify({
            'status': 'error',
            'error': 'Token refresh failed',
            'message': str(e)
        }), 500


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """Logout endpoint - audit only, tokens expire on their own"""
    staff_id = get_jwt_identity()
    claims = get_jwt()
    log_activity(
        staff_id=staff_id,
        action='logout',
        entity_type='staff',
        entity_id=staff_id,
        details={'branch_id': claims.get('branch_id')},
    )
    return jsonify({
        'status': 'success',
        'message': 'Logout successful'
    }), 200
