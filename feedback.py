# feedback.py
# Комментарии по критериям для оценки: синхронизация с формой, быстрое оценивание,
# просмотр, прикрепленные файлы

import logging
import os

import nh3
from flask import current_app, render_template
from markdown_it import MarkdownIt
from markupsafe import Markup, escape
from werkzeug.utils import secure_filename

from assignments import get_configured_criteria
from errors import InvalidParameter
from extensions import db
from models import FeedbackComment, FeedbackFile, Grade
from models.feedback_comment import FORMAT_HTML, FORMAT_MARKDOWN, FORMAT_MOODLE, FORMAT_PLAIN
from permissions import GRADE, require_capability
from strings import get_string

logger = logging.getLogger(__name__)

EDITOR_PREFIX = 'structured_editor_'
QUICKGRADE_PREFIX = 'quickgrade_structured_'
SUMMARY_LENGTH = 140

markdown = MarkdownIt()


def editor_field(criterion_id):
    return f'{EDITOR_PREFIX}{criterion_id}'


def quickgrade_field(criterion_id, user_id):
    return f'{QUICKGRADE_PREFIX}{criterion_id}_{user_id}'


def get_feedback_comments(grade):
    """Комментарии оценки в виде {id критерия: FeedbackComment}."""
    if grade is None or grade.id is None:
        return {}
    comments = FeedbackComment.query.filter_by(grade_id=grade.id).all()
    return {comment.criterion_id: comment for comment in comments}


def get_or_create_grade(assignment, student_id, grader=None):
    grade = Grade.query.filter_by(assignment_id=assignment.id, student_id=student_id).first()
    if grade is None:
        grade = Grade(assignment_id=assignment.id, student_id=student_id,
                      grader_id=grader.id if grader is not None else None)
        db.session.add(grade)
        db.session.flush()
    return grade


def _editor(data, criterion_id):
    editor = data.get(editor_field(criterion_id))
    if editor is not None and not isinstance(editor, dict):
        raise InvalidParameter(f'Invalid value for {editor_field(criterion_id)}')
    return editor


def _stored_text(comments, criterion_id):
    comment = comments.get(criterion_id)
    return comment.comment_text or '' if comment is not None else ''


def _new_comment(assignment, grade, criterion_id, text, comment_format):
    comment = FeedbackComment(
        assignment_id=assignment.id,
        grade_id=grade.id,
        criterion_id=criterion_id,
        comment_text=text,
        comment_format=comment_format,
    )
    db.session.add(comment)
    return comment


def get_form_data(assignment, grade):
    """Данные для формы оценивания: критерии и текущие комментарии."""
    comments = get_feedback_comments(grade)
    fields = []
    for criterion in get_configured_criteria(assignment):
        comment = comments.get(criterion.id)
        fields.append({
            'field': editor_field(criterion.id),
            'criterion': criterion.to_dict(),
            'label': get_string('criteriontitle', name=criterion.name, desc=criterion.description or ''),
            'text': comment.comment_text or '' if comment is not None else '',
            'format': comment.comment_format if comment is not None else FORMAT_HTML,
        })
    return fields


def is_feedback_modified(assignment, grade, data):
    comments = get_feedback_comments(grade)
    for criterion in get_configured_criteria(assignment):
        editor = _editor(data, criterion.id)
        if editor is None:
            continue
        if _stored_text(comments, criterion.id) != (editor.get('text') or ''):
            return True
    return False


def save_feedback(user, assignment, grade, data):
    """
    Сравнивает присланные тексты с сохраненными и записывает изменения.
    Новый комментарий создается только для непустого текста,
    существующий обновляется, если текст изменился и не пустой.
    """
    require_capability(user, GRADE, 'You do not have permission to grade')

    criteria = get_configured_criteria(assignment)
    if not criteria:
        return False

    comments = get_feedback_comments(grade)
    inserted = updated = 0
    for criterion in criteria:
        editor = _editor(data, criterion.id)
        if editor is None:
            continue
        text = editor.get('text') or ''
        comment_format = _as_format(editor.get('format'))
        comment = comments.get(criterion.id)
        if comment is not None:
            if text and text != (comment.comment_text or ''):
                comment.comment_text = text
                comment.comment_format = comment_format
                updated += 1
        elif text:
            _new_comment(assignment, grade, criterion.id, text, comment_format)
            inserted += 1

    grade.grader_id = user.id
    db.session.commit()
    logger.info('Feedback for grade %s saved by user %s: %d inserted, %d updated',
                grade.id, user.id, inserted, updated)
    return True


def is_quickgrading_modified(assignment, user_id, grade, form):
    comments = get_feedback_comments(grade)
    for criterion in get_configured_criteria(assignment):
        value = form.get(quickgrade_field(criterion.id, user_id))
        if value is not None and value != _stored_text(comments, criterion.id):
            return True
    return False


def save_quickgrading_changes(user, assignment, student_id, grade, form):
    require_capability(user, GRADE, 'You do not have permission to grade')

    criteria = get_configured_criteria(assignment)
    if not criteria:
        return False

    comments = get_feedback_comments(grade)
    for criterion in criteria:
        value = form.get(quickgrade_field(criterion.id, student_id))
        if not value:
            continue
        comment = comments.get(criterion.id)
        if comment is not None:
            comment.comment_text = value
        else:
            _new_comment(assignment, grade, criterion.id, value, FORMAT_HTML)

    db.session.commit()
    logger.info('Quick grading feedback for grade %s saved by user %s', grade.id, user.id)
    return True


# --- Поля редактора для офлайн-оценивания ---

def get_editor_fields(assignment):
    return {criterion.name: criterion.description or '' for criterion in get_configured_criteria(assignment)}


def get_editor_text(assignment, name, grade):
    comments = get_feedback_comments(grade)
    for criterion in get_configured_criteria(assignment):
        if criterion.name == name:
            return _stored_text(comments, criterion.id)
    return ''


def set_editor_text(user, assignment, name, value, grade):
    require_capability(user, GRADE, 'You do not have permission to grade')

    comments = get_feedback_comments(grade)
    for criterion in get_configured_criteria(assignment):
        if criterion.name != name:
            continue
        comment = comments.get(criterion.id)
        if comment is not None:
            comment.comment_text = value
        else:
            _new_comment(assignment, grade, criterion.id, value, FORMAT_HTML)
        db.session.commit()
        return True
    return False


# --- Просмотр ---

def format_text(text, comment_format):
    """
    Готовит текст комментария к выводу. HTML, moodle и markdown проходят
    через очистку nh3, простой текст экранируется.
    """
    if not text:
        return Markup('')
    if comment_format == FORMAT_HTML:
        return Markup(nh3.clean(text))
    if comment_format == FORMAT_MARKDOWN:
        return Markup(nh3.clean(markdown.render(text)))
    if comment_format == FORMAT_MOODLE:
        # Формат moodle: HTML, где переносы строк становятся <br>
        return Markup(nh3.clean('<br>\n'.join(text.splitlines())))
    return Markup('<br>').join(escape(line) for line in text.splitlines())


def _entries(assignment, grade):
    comments = get_feedback_comments(grade)
    entries = []
    for criterion in get_configured_criteria(assignment):
        comment = comments.get(criterion.id)
        if comment is None or not comment.comment_text:
            continue
        entries.append({
            'name': criterion.name,
            'description': format_text(criterion.description, FORMAT_PLAIN),
            'comment': format_text(comment.comment_text, comment.comment_format),
        })
    return entries


def view(assignment, grade):
    entries = _entries(assignment, grade)
    if not entries:
        return ''
    return render_template('feedback/view.html', entries=entries)


def view_summary(assignment, grade):
    """Короткий текст для таблицы оценок и признак, нужна ли ссылка на полный просмотр."""
    entries = _entries(assignment, grade)
    if not entries:
        return '', False
    text = render_template('feedback/summary.html', entries=entries)
    plain = ' '.join(Markup(text).striptags().split())
    if len(plain) <= SUMMARY_LENGTH:
        return plain, False
    return plain[:SUMMARY_LENGTH - 3].rstrip() + '...', True


def is_empty(assignment, grade):
    return view(assignment, grade) == ''


# --- Файлы ---

def _grade_dir(grade):
    return os.path.join(current_app.config['FEEDBACK_FILES_DIR'], str(grade.assignment_id), str(grade.id))


def attach_file(user, assignment, grade, upload):
    require_capability(user, GRADE, 'You do not have permission to attach feedback files')

    filename = secure_filename(upload.filename or '')
    if not filename:
        raise InvalidParameter('No file selected')

    directory = _grade_dir(grade)
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    upload.save(path)

    stored = FeedbackFile.query.filter_by(grade_id=grade.id, filename=filename).first()
    if stored is None:
        stored = FeedbackFile(assignment_id=assignment.id, grade_id=grade.id, filename=filename, path=path)
        db.session.add(stored)
    stored.mimetype = upload.mimetype
    stored.size = os.path.getsize(path)
    db.session.commit()
    logger.info('File "%s" attached to grade %s by user %s', filename, grade.id, user.id)
    return stored


def list_files(grade):
    return FeedbackFile.query.filter_by(grade_id=grade.id).order_by(FeedbackFile.timemodified).all()


def export_html(assignment, grade):
    entries = _entries(assignment, grade)
    if not entries:
        return None
    return render_template('feedback/structured.html', title=get_string('pluginname'), entries=entries)


def get_files(assignment, grade):
    """Все файлы отзыва: сгенерированный structured.html и прикрепленные файлы."""
    files = {}
    html = export_html(assignment, grade)
    if html is not None:
        files[get_string('structuredfilename')] = html.encode('utf-8')
    for stored in list_files(grade):
        with open(stored.path, 'rb') as handle:
            files[stored.filename] = handle.read()
    return files


def remove_stored_files(grade):
    for stored in list_files(grade):
        if os.path.exists(stored.path):
            os.remove(stored.path)


def delete_grade(user, grade):
    require_capability(user, GRADE, 'You do not have permission to delete grades')
    remove_stored_files(grade)
    grade_id = grade.id
    db.session.delete(grade)
    db.session.commit()
    logger.info('Grade %s and its feedback deleted by user %s', grade_id, user.id)
    return True


def _as_format(value):
    try:
        comment_format = int(value)
    except (TypeError, ValueError):
        return FORMAT_HTML
    if comment_format not in (0, 1, 2, 4):
        raise InvalidParameter(f'Unknown comment format {value}')
    return comment_format
