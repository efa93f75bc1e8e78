# routes/main.py
# Оценивание: комментарии по критериям, быстрое оценивание, просмотр и файлы

import io
import re

from flask import Blueprint, Response, jsonify, request, send_file

from assignments import get_assignment
from errors import InvalidParameter, NotFound, PermissionDenied
from extensions import db
from feedback import (QUICKGRADE_PREFIX, attach_file, delete_grade, export_html, get_editor_fields, get_editor_text,
                      get_files, get_form_data, get_or_create_grade, is_empty, is_feedback_modified,
                      is_quickgrading_modified, list_files, save_feedback, save_quickgrading_changes, set_editor_text,
                      view, view_summary)
from models import Grade, User
from permissions import GRADE, has_capability, require_capability
from routes.auth import current_user, login_required

main_bp = Blueprint('main', __name__, url_prefix='/assignments/<int:assignment_id>')

QUICKGRADE_FIELD = re.compile(re.escape(QUICKGRADE_PREFIX) + r'(\d+)_(\d+)$')


def _student(student_id):
    student = db.session.get(User, student_id)
    if student is None:
        raise NotFound(f'User {student_id} not found')
    return student


def _existing_grade(assignment, student_id):
    grade = Grade.query.filter_by(assignment_id=assignment.id, student_id=student_id).first()
    if grade is None:
        raise NotFound(f'No grade for user {student_id}')
    return grade


def _require_view_access(student_id):
    user = current_user()
    # Студент видит только свой отзыв
    if user.id != student_id and not has_capability(user, GRADE):
        raise PermissionDenied('You cannot view this feedback')


@main_bp.route('/grades/<int:student_id>/feedback', methods=['GET', 'PUT'])
@login_required
def grade_feedback(assignment_id, student_id):
    user = current_user()
    require_capability(user, GRADE, 'You do not have permission to grade')
    assignment = get_assignment(assignment_id)
    _student(student_id)

    if request.method == 'PUT':
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise InvalidParameter('Expected an object with editor fields')
        grade = get_or_create_grade(assignment, student_id, user)
        modified = is_feedback_modified(assignment, grade, data)
        saved = save_feedback(user, assignment, grade, data)
        return jsonify({'saved': saved, 'modified': modified, 'grade': grade.to_dict(),
                        'fields': get_form_data(assignment, grade)})

    grade = Grade.query.filter_by(assignment_id=assignment.id, student_id=student_id).first()
    return jsonify({
        'grade': grade.to_dict() if grade else None,
        'fields': get_form_data(assignment, grade),
    })


@main_bp.route('/grades/<int:student_id>/feedback/view')
@login_required
def feedback_view(assignment_id, student_id):
    _require_view_access(student_id)
    assignment = get_assignment(assignment_id)
    grade = _existing_grade(assignment, student_id)
    summary, show_view_link = view_summary(assignment, grade)
    return jsonify({
        'html': view(assignment, grade),
        'summary': summary,
        'showviewlink': show_view_link,
        'empty': is_empty(assignment, grade),
    })


@main_bp.route('/quickgrading', methods=['POST'])
@login_required
def quickgrading(assignment_id):
    user = current_user()
    require_capability(user, GRADE, 'You do not have permission to grade')
    assignment = get_assignment(assignment_id)
    form = request.form

    student_ids = set()
    for field in form:
        match = QUICKGRADE_FIELD.match(field)
        if match:
            student_ids.add(int(match.group(2)))

    # Все пользователи проверяются до первой записи
    for student_id in student_ids:
        _student(student_id)

    saved = []
    for student_id in sorted(student_ids):
        grade = Grade.query.filter_by(assignment_id=assignment.id, student_id=student_id).first()
        if not is_quickgrading_modified(assignment, student_id, grade, form):
            continue
        if grade is None:
            grade = get_or_create_grade(assignment, student_id, user)
        save_quickgrading_changes(user, assignment, student_id, grade, form)
        saved.append(student_id)

    return jsonify({'saved': saved})


@main_bp.route('/editor-fields')
@login_required
def editor_fields(assignment_id):
    require_capability(current_user(), GRADE, 'You do not have permission to grade')
    return jsonify(get_editor_fields(get_assignment(assignment_id)))


@main_bp.route('/grades/<int:student_id>/feedback/editor/<path:name>', methods=['GET', 'PUT'])
@login_required
def editor_text(assignment_id, student_id, name):
    user = current_user()
    require_capability(user, GRADE, 'You do not have permission to grade')
    assignment = get_assignment(assignment_id)
    _student(student_id)

    if request.method == 'PUT':
        data = request.get_json(silent=True) or {}
        grade = get_or_create_grade(assignment, student_id, user)
        if not set_editor_text(user, assignment, name, data.get('text') or '', grade):
            raise NotFound(f'No criterion named "{name}"')

    grade = Grade.query.filter_by(assignment_id=assignment.id, student_id=student_id).first()
    return jsonify({'name': name, 'text': get_editor_text(assignment, name, grade)})


@main_bp.route('/grades/<int:student_id>/feedback/files', methods=['GET', 'POST'])
@login_required
def feedback_files(assignment_id, student_id):
    assignment = get_assignment(assignment_id)

    if request.method == 'POST':
        user = current_user()
        require_capability(user, GRADE, 'You do not have permission to attach feedback files')
        _student(student_id)
        if 'file' not in request.files:
            raise InvalidParameter('No file provided')
        grade = get_or_create_grade(assignment, student_id, user)
        stored = attach_file(user, assignment, grade, request.files['file'])
        return jsonify(stored.to_dict()), 201

    _require_view_access(student_id)
    grade = _existing_grade(assignment, student_id)
    return jsonify([stored.to_dict() for stored in list_files(grade)])


@main_bp.route('/grades/<int:student_id>/feedback/files/<path:filename>')
@login_required
def download_file(assignment_id, student_id, filename):
    _require_view_access(student_id)
    assignment = get_assignment(assignment_id)
    grade = _existing_grade(assignment, student_id)
    files = get_files(assignment, grade)
    if filename not in files:
        raise NotFound(f'File "{filename}" not found')
    return send_file(io.BytesIO(files[filename]), download_name=filename, as_attachment=True)


@main_bp.route('/grades/<int:student_id>/feedback/structured.html')
@login_required
def export_feedback(assignment_id, student_id):
    _require_view_access(student_id)
    assignment = get_assignment(assignment_id)
    grade = _existing_grade(assignment, student_id)
    html = export_html(assignment, grade)
    if html is None:
        raise NotFound('There is no structured feedback for this grade')
    return Response(html, mimetype='text/html')


@main_bp.route('/grades/<int:student_id>', methods=['DELETE'])
@login_required
def remove_grade(assignment_id, student_id):
    assignment = get_assignment(assignment_id)
    grade = _existing_grade(assignment, student_id)
    delete_grade(current_user(), grade)
    return jsonify({'deleted': True})
