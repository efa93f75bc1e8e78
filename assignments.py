# assignments.py
# Критерии конкретного задания: чтение, сохранение формы настроек, копирование набора, удаление

import logging

from flask import current_app

from errors import NotFound, PermissionDenied
from extensions import db
from logic import build_status, can_read_set, clean_criteria, get_criteria_set
from models import Assignment, CriteriaSet, Criterion, FeedbackComment
from permissions import MANAGE_OWN, require_capability

logger = logging.getLogger(__name__)


def get_assignment(assignment_id):
    assignment = db.session.get(Assignment, assignment_id) if assignment_id else None
    if assignment is None:
        raise NotFound(f'Assignment {assignment_id} not found')
    return assignment


def get_configured_criteria(assignment):
    """Критерии собственного набора задания по порядку (пустой список, если набора нет)."""
    if not assignment.criteria_set_id or assignment.criteria_set is None:
        return []
    return list(assignment.criteria_set.criteria)


def used_criterion_ids(criterion_ids):
    if not criterion_ids:
        return set()
    rows = db.session.query(FeedbackComment.criterion_id).filter(
        FeedbackComment.criterion_id.in_(criterion_ids)
    ).distinct().all()
    return {row[0] for row in rows}


def get_assignment_criteria(assignment):
    criteria = get_configured_criteria(assignment)
    if not criteria:
        default_name = current_app.config.get('STRUCTURED_DEFAULT_CRITNAME') or ''
        if not default_name:
            return []
        # Новое задание: предлагаем критерий из настроек сайта
        return [{
            'id': 0,
            'name': default_name,
            'description': current_app.config.get('STRUCTURED_DEFAULT_CRITDESC') or '',
            'used': False,
        }]

    used = used_criterion_ids([c.id for c in criteria])
    return [dict(c.to_dict(), used=c.id in used) for c in criteria]


def create_assignment(user, name, course=None):
    require_capability(user, MANAGE_OWN, 'You do not have permission to create assignments')
    assignment = Assignment(name=(name or '').strip(), course=course)
    db.session.add(assignment)
    db.session.commit()
    logger.info('Assignment %s "%s" created by user %s', assignment.id, assignment.name, user.id)
    return assignment


def _ensure_private_set(user, assignment):
    if assignment.criteria_set is not None:
        return assignment.criteria_set
    criteria_set = CriteriaSet(name='', name_lowercase=None, owner_id=user.id, shared=False)
    db.session.add(criteria_set)
    db.session.flush()
    assignment.criteria_set_id = criteria_set.id
    assignment.criteria_set = criteria_set
    return criteria_set


def _drop_private_set(assignment):
    criteria_set = assignment.criteria_set
    if criteria_set is None:
        return
    assignment.criteria_set_id = None
    assignment.criteria_set = None
    db.session.delete(criteria_set)


def save_assignment_criteria(user, assignment, rows):
    """
    Сохраняет критерии из формы настроек задания.
    Строки без имени пропускаются, существующие критерии обновляются на месте,
    новые добавляются, не пришедшие в форме удаляются.
    Критерии, по которым уже есть отзывы, не меняются и не удаляются.
    """
    require_capability(user, MANAGE_OWN, 'You do not have permission to configure criteria')

    existing = {c.id: c for c in get_configured_criteria(assignment)}
    used = used_criterion_ids(list(existing))

    kept = []
    for row in rows or []:
        name = (row.get('name') or '').strip()
        description = (row.get('description') or '').strip()
        criterion = existing.pop(_as_int(row.get('id')), None)
        if criterion is not None and criterion.id in used:
            kept.append(criterion)
            continue
        if not name:
            if criterion is not None:
                existing[criterion.id] = criterion
            continue
        if criterion is not None:
            if criterion.name != name or (criterion.description or '') != description:
                criterion.name = name
                criterion.description = description
            kept.append(criterion)
        else:
            kept.append(Criterion(name=name, description=description))

    # Использованные критерии остаются, даже если их нет в форме
    for criterion_id, criterion in list(existing.items()):
        if criterion_id in used:
            kept.append(criterion)
            existing.pop(criterion_id)

    if not kept:
        _drop_private_set(assignment)
        assignment.structured_enabled = False
        db.session.commit()
        logger.info('Structured feedback disabled for assignment %s: no criteria', assignment.id)
        return []

    criteria_set = _ensure_private_set(user, assignment)
    for criterion in existing.values():
        criteria_set.criteria.remove(criterion)
    for position, criterion in enumerate(kept):
        criterion.position = position
        if criterion not in criteria_set.criteria:
            criteria_set.criteria.append(criterion)
    criteria_set.criteria.sort(key=lambda c: c.position)
    assignment.structured_enabled = True
    db.session.commit()

    logger.info('Assignment %s criteria saved by user %s (%d criteria, %d removed)',
                assignment.id, user.id, len(kept), len(existing))
    return get_assignment_criteria(assignment)


def use_criteria_set(user, assignment, set_id):
    """Копирует сохраненный набор в собственный набор задания."""
    require_capability(user, MANAGE_OWN, 'You do not have permission to configure criteria')
    source = get_criteria_set(set_id)
    if not source.is_named or not can_read_set(user, source):
        raise PermissionDenied('You do not have permission to copy this criteria set')

    current = get_configured_criteria(assignment)
    if used_criterion_ids([c.id for c in current]):
        logger.warning('Criteria set %s not copied into assignment %s: criteria used', source.id, assignment.id)
        return build_status('criteriaused', title='criteriasetuse')

    rows = clean_criteria([c.to_dict() for c in source.criteria])
    criteria_set = _ensure_private_set(user, assignment)
    for criterion in list(criteria_set.criteria):
        criteria_set.criteria.remove(criterion)
    for position, row in enumerate(rows):
        criteria_set.criteria.append(Criterion(position=position, **row))
    assignment.structured_enabled = True
    db.session.commit()

    logger.info('Criteria set %s copied into assignment %s by user %s', source.id, assignment.id, user.id)
    return build_status('used', success=True, hide=True, title='criteriasetuse', name=source.name)


def delete_assignment(user, assignment):
    require_capability(user, MANAGE_OWN, 'You do not have permission to delete assignments')

    # Импорт здесь, чтобы избежать циклической зависимости с feedback
    from feedback import remove_stored_files

    for grade in assignment.grades:
        remove_stored_files(grade)

    # Оценки, комментарии и файлы удаляются каскадом
    assignment_id = assignment.id
    criteria_set = assignment.criteria_set
    db.session.delete(assignment)
    db.session.flush()
    if criteria_set is not None:
        db.session.delete(criteria_set)
    db.session.commit()
    logger.info('Assignment %s deleted by user %s', assignment_id, user.id)
    return True


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
