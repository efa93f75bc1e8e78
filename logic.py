# logic.py
# Наборы критериев: список, чтение, сохранение, изменение, удаление

import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from errors import InvalidParameter, NotFound, PermissionDenied
from extensions import db
from models import Assignment, CriteriaSet, Criterion, FeedbackComment
from permissions import EDIT_ANY, MANAGE_OWN, PUBLISH, has_capability, is_superuser, require_capability
from strings import get_string

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'shared')


def build_status(key, success=False, hide=False, title='criteriasetsave', label='continue', **params):
    """
    Ответ для интерфейса вместо исключения: статус, заголовок, текст и подпись кнопки.
    """
    return {
        'status': key,
        'success': success,
        'hide': hide,
        'title': get_string(title),
        'body': get_string('criteriaset' + key, **params) if key != 'criteriaused' else get_string(key),
        'label': get_string(label),
    }


def normalise_name(raw_name):
    name = (raw_name or '').strip()
    return name[:1].upper() + name[1:]


def is_name_used(name, exclude_id=None):
    query = CriteriaSet.query.filter(CriteriaSet.name_lowercase == name.lower())
    if exclude_id is not None:
        query = query.filter(CriteriaSet.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def clean_criteria(criteria):
    """Оставляет только критерии с непустым именем, в исходном порядке."""
    cleaned = []
    for criterion in criteria or []:
        name = (criterion.get('name') or '').strip()
        if not name:
            continue
        cleaned.append({'name': name, 'description': (criterion.get('description') or '').strip()})
    return cleaned


def get_criteria_set(set_id):
    criteria_set = db.session.get(CriteriaSet, set_id) if set_id else None
    if criteria_set is None:
        raise NotFound(f'Criteria set {set_id} not found')
    return criteria_set


def can_read_set(user, criteria_set):
    if criteria_set.owner_id == user.id:
        return True
    if has_capability(user, EDIT_ANY) or is_superuser(user):
        return True
    if not criteria_set.is_named:
        return has_capability(user, MANAGE_OWN)
    return bool(criteria_set.shared)


def can_edit_set(user, criteria_set):
    if is_superuser(user) or has_capability(user, EDIT_ANY):
        return True
    return criteria_set.owner_id == user.id


def list_criteria_sets(user, include_shared=False):
    if not include_shared:
        require_capability(user, MANAGE_OWN, 'You do not have permission to manage criteria sets')

    named = CriteriaSet.query.filter(CriteriaSet.name != '')

    owned = named
    # Администратор в режиме управления видит все наборы
    if not is_superuser(user) or include_shared:
        owned = owned.filter(CriteriaSet.owner_id == user.id)
    result = {
        'ownedsets': [s.summary() for s in owned.order_by(CriteriaSet.name).all()],
        'sharedsets': [],
    }

    if include_shared:
        shared = named.filter(CriteriaSet.owner_id != user.id, CriteriaSet.shared.is_(True))
        result['sharedsets'] = [s.summary() for s in shared.order_by(CriteriaSet.name).all()]

    return result


def get_criteria(user, set_id):
    criteria_set = get_criteria_set(set_id)
    if not can_read_set(user, criteria_set):
        raise PermissionDenied('You do not have permission to view this criteria set')
    return [criterion.to_dict() for criterion in criteria_set.criteria]


def save_criteria_set(user, name, criteria, shared=False):
    require_capability(user, MANAGE_OWN, 'You do not have permission to save criteria sets')
    if shared:
        require_capability(user, PUBLISH, 'You do not have permission to share criteria sets')

    name = normalise_name(name)
    if not name:
        logger.warning('Criteria set not saved for user %s: no name', user.id)
        return build_status('noname')
    if is_name_used(name):
        logger.warning('Criteria set not saved for user %s: name "%s" is used', user.id, name)
        return build_status('nameused')

    rows = clean_criteria(criteria)
    if not rows:
        logger.warning('Criteria set "%s" not saved for user %s: no criteria', name, user.id)
        return build_status('nocriteria')

    criteria_set = CriteriaSet(name=name, name_lowercase=name.lower(), owner_id=user.id, shared=bool(shared))
    for position, row in enumerate(rows):
        criteria_set.criteria.append(Criterion(position=position, **row))
    db.session.add(criteria_set)
    try:
        db.session.commit()
    except IntegrityError:
        # Параллельное сохранение с тем же именем
        db.session.rollback()
        logger.warning('Criteria set "%s" hit the unique name constraint', name)
        return build_status('nameused')

    logger.info('Criteria set %s "%s" saved by user %s (shared=%s)', criteria_set.id, name, user.id, bool(shared))
    return build_status('saved', success=True, hide=True, name=name)


def update_criteria_set(user, set_id, updates):
    require_capability(user, MANAGE_OWN, 'You do not have permission to update criteria sets')

    updates = dict(updates or {})
    unknown = set(updates) - set(UPDATABLE_FIELDS)
    if unknown:
        raise InvalidParameter(f'Cannot update field(s): {", ".join(sorted(unknown))}')

    criteria_set = get_criteria_set(set_id)
    if not criteria_set.is_named:
        raise NotFound(f'Criteria set {set_id} not found')
    if not can_edit_set(user, criteria_set):
        raise PermissionDenied('You can only update your own criteria sets')
    if updates.get('shared'):
        require_capability(user, PUBLISH, 'You do not have permission to share criteria sets')

    status_params = {'title': 'criteriasetupdate'}
    if 'name' in updates:
        name = normalise_name(updates['name'])
        if not name:
            return build_status('noname', **status_params)
        if is_name_used(name, exclude_id=criteria_set.id):
            logger.warning('Criteria set %s not renamed: name "%s" is used', criteria_set.id, name)
            return build_status('nameused', **status_params)
        criteria_set.name = name
        criteria_set.name_lowercase = name.lower()
    if 'shared' in updates:
        criteria_set.shared = bool(updates['shared'])

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return build_status('nameused', **status_params)

    logger.info('Criteria set %s updated by user %s: %s', criteria_set.id, user.id, sorted(updates))
    return build_status('updated', success=True, hide=True, name=criteria_set.name, **status_params)


def delete_criteria_set(user, set_id):
    require_capability(user, MANAGE_OWN, 'You do not have permission to delete criteria sets')

    criteria_set = db.session.get(CriteriaSet, set_id) if set_id else None
    if criteria_set is None:
        return False
    if not is_superuser(user) and criteria_set.owner_id != user.id:
        raise PermissionDenied('You can only delete your own criteria sets')

    if current_app.config.get('STRUCTURED_PROTECT_USED_SETS', True):
        in_use = Assignment.query.filter_by(criteria_set_id=criteria_set.id).first()
        if in_use:
            logger.warning('Criteria set %s not deleted: used by assignment %s', criteria_set.id, in_use.id)
            return False

    criterion_ids = [c.id for c in criteria_set.criteria]
    if criterion_ids:
        FeedbackComment.query.filter(FeedbackComment.criterion_id.in_(criterion_ids)).delete(synchronize_session=False)
    Assignment.query.filter_by(criteria_set_id=criteria_set.id).update(
        {'criteria_set_id': None, 'structured_enabled': False})
    db.session.delete(criteria_set)
    db.session.commit()
    logger.info('Criteria set %s deleted by user %s', set_id, user.id)
    return True
