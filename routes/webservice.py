# routes/webservice.py
# Веб-сервис в формате AJAX-вызовов: [{"methodname": ..., "args": {...}}]

import logging

from flask import Blueprint, jsonify, request

from assignments import get_assignment
from errors import InvalidParameter, NotFound, StructuredFeedbackError
from extensions import db
from logic import delete_criteria_set, get_criteria, list_criteria_sets, save_criteria_set, update_criteria_set
from routes.auth import current_user, login_required

webservice_bp = Blueprint('webservice', __name__, url_prefix='/webservice')
logger = logging.getLogger(__name__)

REQUIRED = object()


def _to_int(value, name):
    if isinstance(value, bool):
        raise InvalidParameter(f'Invalid parameter value for {name}')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameter(f'Invalid parameter value for {name}')


def _to_bool(value, name):
    if isinstance(value, bool):
        return value
    if value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ('true', 'false', '1', '0'):
        return value.strip().lower() in ('true', '1')
    raise InvalidParameter(f'Invalid parameter value for {name}')


def _to_text(value, name):
    if value is None:
        return ''
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise InvalidParameter(f'Invalid parameter value for {name}')
    return str(value)


def _to_criteria(value, name):
    if not isinstance(value, list):
        raise InvalidParameter(f'Invalid parameter value for {name}')
    criteria = []
    for item in value:
        if not isinstance(item, dict) or 'name' not in item:
            raise InvalidParameter(f'Invalid criterion in {name}')
        criteria.append({
            'name': _to_text(item.get('name'), 'name'),
            'description': _to_text(item.get('description'), 'description'),
        })
    return criteria


def _to_updates(value, name):
    if not isinstance(value, dict):
        raise InvalidParameter(f'Invalid parameter value for {name}')
    updates = {}
    if 'name' in value:
        updates['name'] = _to_text(value['name'], 'name')
    if 'shared' in value:
        updates['shared'] = _to_bool(value['shared'], 'shared')
    unknown = set(value) - {'name', 'shared'}
    if unknown:
        raise InvalidParameter(f'Cannot update field(s): {", ".join(sorted(unknown))}')
    return updates


def _get_criteria(user, contextid, criteriasetid):
    return get_criteria(user, criteriasetid)


def _get_criteriasets(user, contextid, includeshared):
    return list_criteria_sets(user, include_shared=includeshared)


def _save_criteriaset(user, contextid, name, criteria, shared):
    return save_criteria_set(user, name, criteria, shared)


def _update_criteriaset(user, contextid, criteriasetid, updates):
    return update_criteria_set(user, criteriasetid, updates)


def _delete_criteriaset(user, contextid, criteriasetid):
    return delete_criteria_set(user, criteriasetid)


# Описание функций: обработчик и параметры (имя, преобразование, значение по умолчанию)
FUNCTIONS = {
    'structured_get_criteria': {
        'handler': _get_criteria,
        'type': 'read',
        'params': [('contextid', _to_int, REQUIRED), ('criteriasetid', _to_int, REQUIRED)],
    },
    'structured_get_criteriasets': {
        'handler': _get_criteriasets,
        'type': 'read',
        'params': [('contextid', _to_int, REQUIRED), ('includeshared', _to_bool, False)],
    },
    'structured_save_criteriaset': {
        'handler': _save_criteriaset,
        'type': 'write',
        'params': [('contextid', _to_int, REQUIRED), ('name', _to_text, REQUIRED),
                   ('criteria', _to_criteria, REQUIRED), ('shared', _to_bool, False)],
    },
    'structured_update_criteriaset': {
        'handler': _update_criteriaset,
        'type': 'write',
        'params': [('contextid', _to_int, REQUIRED), ('criteriasetid', _to_int, REQUIRED),
                   ('updates', _to_updates, REQUIRED)],
    },
    'structured_delete_criteriaset': {
        'handler': _delete_criteriaset,
        'type': 'write',
        'params': [('contextid', _to_int, REQUIRED), ('criteriasetid', _to_int, REQUIRED)],
    },
}


def validate_parameters(params, args):
    if not isinstance(args, dict):
        raise InvalidParameter('Arguments must be an object')
    unknown = set(args) - {name for name, _, _ in params}
    if unknown:
        raise InvalidParameter(f'Unexpected parameter(s): {", ".join(sorted(unknown))}')
    values = {}
    for name, convert, default in params:
        if name not in args:
            if default is REQUIRED:
                raise InvalidParameter(f'Missing required parameter {name}')
            values[name] = default
            continue
        values[name] = convert(args[name], name)
    return values


def call_function(methodname, args):
    """Проверяет параметры и контекст (задание), затем вызывает функцию."""
    function = FUNCTIONS.get(methodname)
    if function is None:
        raise NotFound(f'Web service function {methodname} does not exist')
    values = validate_parameters(function['params'], args)
    get_assignment(values['contextid'])
    return function['handler'](current_user(), **values)


def _run(methodname, args):
    try:
        return {'error': False, 'data': call_function(methodname, args)}
    except StructuredFeedbackError as e:
        db.session.rollback()
        logger.warning('Web service call %s refused: %s', methodname, e.message)
        return {'error': True, 'exception': e.to_dict()}


@webservice_bp.route('/ajax', methods=['POST'])
@login_required
def ajax():
    calls = request.get_json(silent=True)
    if not isinstance(calls, list):
        return jsonify({'error': 'Expected a list of calls'}), 400

    responses = []
    for call in calls:
        if not isinstance(call, dict) or 'methodname' not in call:
            responses.append({'error': True, 'exception': InvalidParameter('Invalid call').to_dict()})
            continue
        responses.append(_run(call['methodname'], call.get('args', {})))
    return jsonify(responses)


@webservice_bp.route('/<methodname>', methods=['POST'])
@login_required
def single_call(methodname):
    # Ошибки обрабатываются общим обработчиком приложения
    result = call_function(methodname, request.get_json(silent=True) or {})
    return jsonify(result)
