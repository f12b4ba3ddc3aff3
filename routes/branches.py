"""Branch routes - public branch directory."""

from flask import Blueprint, current_app, jsonify
from extensions import db
from models.branch import Branch

branches_bp = Blueprint('branches', __name__)


@branches_bp.route('/', methods=['GET'])
def get_branches():
    """List active branches by name"""
    try:
        branches = Branch.query.filter_by(is_active=True).order_by(Branch.name).all()
        return jsonify({
            'status': 'success',
            'data': [b.to_dict() for b in branches]
        }), 200
    except Exception as e:
        current_app.logger.exception('Error fetching branches: %s', e)
        return jsonify({
            'status': 'error',
            'error': 'Failed to fetch branches',
            'message': str(e)
        }), 500


@branches_bp.route('/<branch_id>', methods=['GET'])
def get_branch(branch_id):
    try:
        branch = db.session.get(Branch, branch_id)
        if not branch:
            return jsonify({
                'status': 'error',
                'error': 'Branch not found'
            }), 404
        return jsonify({
            'status': 'success',
            'data': branch.to_dict()
        }), 200
    except Exception as e:
        current_app.logger.exception('Error fetching branch: %s', e)
        return jsonify({
            'status': 'error',
            'error': 'Failed to fetch branch',
            'message': str(e)
        }), 500
