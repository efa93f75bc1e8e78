# routes/admin.py
# Задания и настройка их критериев

from flask import Blueprint, jsonify, request

from assignments import (create_assignment, delete_assignment, get_assignment, get_assignment_criteria,
                         save_assignment_criteria, use_criteria_set)
from errors import InvalidParameter
from models import Assignment
from routes.auth import current_user, login_required

admin_bp = Blueprint('admin', __name__, url_prefix='/assignments')


@admin_bp.route('', methods=['GET', 'POST'])
@login_required
def manage_assignments():
    if request.method == 'POST':
        data = request.get_json(silent=True) or request.form
        name = (data.get('name') or '').strip()
        if not name:
            raise InvalidParameter('Assignment name is required')
        assignment = create_assignment(current_user(), name, data.get('course'))
        return jsonify(assignment.to_dict()), 201

    assignments = Assignment.query.order_by(Assignment.created_at.desc(), Assignment.id.desc()).all()
    return jsonify([a.to_dict() for a in assignments])


@admin_bp.route('/<int:assignment_id>', methods=['GET'])
@login_required
def assignment_details(assignment_id):
    assignment = get_assignment(assignment_id)
    return jsonify(dict(assignment.to_dict(), criteria=get_assignment_criteria(assignment)))


@admin_bp.route('/<int:assignment_id>', methods=['DELETE'])
@login_required
def remove_assignment(assignment_id):
    assignment = get_assignment(assignment_id)
    delete_assignment(current_user(), assignment)
    return jsonify({'deleted': True})


@admin_bp.route('/<int:assignment_id>/criteria', methods=['GET', 'PUT'])
@login_required
def assignment_criteria(assignment_id):
    assignment = get_assignment(assignment_id)
    if request.method == 'PUT':
        data = request.get_json(silent=True) or {}
        rows = data.get('criteria')
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise InvalidParameter('criteria must be a list of objects')
        criteria = save_assignment_criteria(current_user(), assignment, rows)
        return jsonify({'structured_enabled': bool(assignment.structured_enabled), 'criteria': criteria})

    return jsonify({'structured_enabled': bool(assignment.structured_enabled),
                    'criteria': get_assignment_criteria(assignment)})


@admin_bp.route('/<int:assignment_id>/criteria/use', methods=['POST'])
@login_required
def use_saved_set(assignment_id):
    assignment = get_assignment(assignment_id)
    data = request.get_json(silent=True) or {}
    try:
        set_id = int(data.get('criteriasetid'))
    except (TypeError, ValueError):
        raise InvalidParameter('criteriasetid is required')
    return jsonify(use_criteria_set(current_user(), assignment, set_id))
