"""
Test: AJAX web service dispatcher: parameter validation, context checks,
soft status messages and hard permission errors.
"""
from models import CriteriaSet


def _call(client, methodname, **args):
    response = client.post('/webservice/ajax', json=[{'methodname': methodname, 'args': args}])
    assert response.status_code == 200
    return response.get_json()[0]


def test_requires_login(client, assignment):
    response = client.post('/webservice/ajax', json=[])
    assert response.status_code == 401


def test_save_then_list(login, assignment):
    client = login('teacher')
    result = _call(client, 'structured_save_criteriaset', contextid=assignment.id, name='Foo',
                   criteria=[{'name': 'A', 'description': 'd'}], shared=False)
    assert result['error'] is False
    assert result['data']['status'] == 'saved'

    result = _call(client, 'structured_get_criteriasets', contextid=assignment.id, includeshared=False)
    owned = result['data']['ownedsets']
    assert [(s['name'], s['shared']) for s in owned] == [('Foo', False)]

    result = _call(client, 'structured_get_criteria', contextid=assignment.id, criteriasetid=owned[0]['id'])
    assert [(c['name'], c['description']) for c in result['data']] == [('A', 'd')]


def test_soft_failure_is_not_an_error(login, assignment):
    client = login('teacher')
    _call(client, 'structured_save_criteriaset', contextid=assignment.id, name='Foo',
          criteria=[{'name': 'A', 'description': ''}])
    result = _call(client, 'structured_save_criteriaset', contextid=assignment.id, name='foo',
                   criteria=[{'name': 'B', 'description': ''}])
    assert result['error'] is False
    assert result['data']['status'] == 'nameused'
    assert CriteriaSet.query.count() == 1


def test_several_calls_in_one_request(login, assignment):
    client = login('teacher')
    response = client.post('/webservice/ajax', json=[
        {'methodname': 'structured_save_criteriaset',
         'args': {'contextid': assignment.id, 'name': 'One', 'criteria': [{'name': 'A'}]}},
        {'methodname': 'structured_get_criteriasets',
         'args': {'contextid': assignment.id, 'includeshared': 'true'}},
    ])
    first, second = response.get_json()
    assert first['data']['status'] == 'saved'
    assert [s['name'] for s in second['data']['ownedsets']] == ['One']


def test_update_and_delete(login, assignment):
    client = login('teacher')
    _call(client, 'structured_save_criteriaset', contextid=assignment.id, name='Foo',
          criteria=[{'name': 'A', 'description': ''}])
    set_id = CriteriaSet.query.filter_by(name='Foo').one().id

    result = _call(client, 'structured_update_criteriaset', contextid=assignment.id, criteriasetid=set_id,
                   updates={'shared': True})
    assert result['data']['success'] is True

    result = _call(client, 'structured_delete_criteriaset', contextid=assignment.id, criteriasetid=set_id)
    assert result == {'error': False, 'data': True}
    assert CriteriaSet.query.count() == 0


def test_student_gets_permission_error(login, assignment):
    client = login('student')
    result = _call(client, 'structured_save_criteriaset', contextid=assignment.id, name='Foo',
                   criteria=[{'name': 'A', 'description': ''}], shared=False)
    assert result['error'] is True
    assert result['exception']['errorcode'] == 'nopermissions'
    assert CriteriaSet.query.count() == 0

    result = _call(client, 'structured_get_criteriasets', contextid=assignment.id, includeshared=False)
    assert result['exception']['errorcode'] == 'nopermissions'


def test_missing_parameter(login, assignment):
    client = login('teacher')
    result = _call(client, 'structured_save_criteriaset', contextid=assignment.id, name='Foo')
    assert result['error'] is True
    assert result['exception']['errorcode'] == 'invalidparameter'


def test_bad_parameter_types(login, assignment):
    client = login('teacher')
    result = _call(client, 'structured_get_criteria', contextid=assignment.id, criteriasetid='abc')
    assert result['exception']['errorcode'] == 'invalidparameter'

    result = _call(client, 'structured_update_criteriaset', contextid=assignment.id, criteriasetid=1,
                   updates={'owner': 3})
    assert result['exception']['errorcode'] == 'invalidparameter'


def test_unknown_context(login):
    client = login('teacher')
    result = _call(client, 'structured_get_criteriasets', contextid=999, includeshared=True)
    assert result['exception']['errorcode'] == 'notfound'


def test_unknown_function(login, assignment):
    client = login('teacher')
    result = _call(client, 'structured_nothing', contextid=assignment.id)
    assert result['exception']['errorcode'] == 'notfound'


def test_single_call_endpoint(login, assignment):
    client = login('student')
    response = client.post('/webservice/structured_delete_criteriaset',
                           json={'contextid': assignment.id, 'criteriasetid': 1})
    assert response.status_code == 403
    assert response.get_json()['exception']['errorcode'] == 'nopermissions'

    client = login('teacher')
    response = client.post('/webservice/structured_get_criteriasets',
                           json={'contextid': assignment.id, 'includeshared': True})
    assert response.status_code == 200
    assert response.get_json() == {'ownedsets': [], 'sharedsets': []}
