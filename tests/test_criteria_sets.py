"""
Test: criteria set listing, saving, updating and deleting.
"""
import pytest

import logic
from errors import InvalidParameter, NotFound, PermissionDenied
from extensions import db
from logic import (delete_criteria_set, get_criteria, list_criteria_sets, normalise_name, save_criteria_set,
                   update_criteria_set)
from models import CriteriaSet, Criterion

CRITERIA = [
    {'name': 'Argument', 'description': 'Strength of the thesis'},
    {'name': 'Evidence', 'description': ''},
]


def _set_named(name):
    return CriteriaSet.query.filter_by(name=name).one()


class TestSaveCriteriaSet:
    def test_round_trip(self, users):
        status = save_criteria_set(users['teacher'], 'Foo', [{'name': 'A', 'description': 'd'}], False)
        assert status['status'] == 'saved'
        assert status['success'] is True
        assert status['hide'] is True

        sets = list_criteria_sets(users['teacher'], include_shared=False)
        assert [s['name'] for s in sets['ownedsets']] == ['Foo']
        assert sets['ownedsets'][0]['shared'] is False
        assert get_criteria(users['teacher'], sets['ownedsets'][0]['id']) == [
            {'id': _set_named('Foo').criteria[0].id, 'name': 'A', 'description': 'd'}
        ]

    def test_status_payload_has_title_body_and_label(self, users):
        status = save_criteria_set(users['teacher'], 'Foo', CRITERIA)
        assert status['title'] == 'Save criteria set'
        assert 'Foo' in status['body']
        assert status['label'] == 'Continue'

    def test_name_is_trimmed_and_capitalised(self, users):
        save_criteria_set(users['teacher'], '  essay marking ', CRITERIA)
        criteria_set = _set_named('Essay marking')
        assert criteria_set.name_lowercase == 'essay marking'

    def test_duplicate_name_is_case_insensitive(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        status = save_criteria_set(users['teacher2'], 'ESSAY', CRITERIA)
        assert status['status'] == 'nameused'
        assert status['success'] is False
        assert status['hide'] is False
        assert CriteriaSet.query.count() == 1

    def test_empty_name(self, users):
        status = save_criteria_set(users['teacher'], '   ', CRITERIA)
        assert status['status'] == 'noname'
        assert CriteriaSet.query.count() == 0

    def test_no_named_criteria(self, users):
        status = save_criteria_set(users['teacher'], 'Empty', [{'name': '  ', 'description': 'ignored'}])
        assert status['status'] == 'nocriteria'
        assert CriteriaSet.query.count() == 0
        assert Criterion.query.count() == 0

    def test_unnamed_criteria_are_dropped(self, users):
        rows = [{'name': 'First', 'description': ''}, {'name': '', 'description': 'x'}, {'name': 'Third'}]
        save_criteria_set(users['teacher'], 'Mixed', rows)
        assert [c.name for c in _set_named('Mixed').criteria] == ['First', 'Third']
        assert [c.position for c in _set_named('Mixed').criteria] == [0, 1]

    def test_name_taken_by_concurrent_save(self, users, monkeypatch):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        # Проверка имени прошла, но запись упирается в уникальный индекс
        monkeypatch.setattr(logic, 'is_name_used', lambda name, exclude_id=None: False)

        status = save_criteria_set(users['teacher2'], 'essay', CRITERIA)
        assert status['status'] == 'nameused'
        assert status['success'] is False
        assert CriteriaSet.query.count() == 1
        assert Criterion.query.count() == len(CRITERIA)

    def test_student_cannot_save(self, users):
        with pytest.raises(PermissionDenied):
            save_criteria_set(users['student'], 'Mine', CRITERIA)
        assert CriteriaSet.query.count() == 0

    def test_student_cannot_share(self, users):
        with pytest.raises(PermissionDenied):
            save_criteria_set(users['student'], 'Mine', CRITERIA, shared=True)


class TestUpdateCriteriaSet:
    def test_shared_only_leaves_name(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        set_id = _set_named('Essay').id

        status = update_criteria_set(users['teacher'], set_id, {'shared': True})
        assert status['status'] == 'updated'
        criteria_set = db.session.get(CriteriaSet, set_id)
        assert criteria_set.name == 'Essay'
        assert criteria_set.shared is True

    def test_rename(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        set_id = _set_named('Essay').id
        status = update_criteria_set(users['teacher'], set_id, {'name': 'report'})
        assert status['success'] is True
        criteria_set = db.session.get(CriteriaSet, set_id)
        assert criteria_set.name == 'Report'
        assert criteria_set.name_lowercase == 'report'
        assert criteria_set.shared is False

    def test_rename_to_own_name_in_other_case(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        set_id = _set_named('Essay').id
        assert update_criteria_set(users['teacher'], set_id, {'name': 'essay'})['status'] == 'updated'

    def test_rename_to_used_name(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        save_criteria_set(users['teacher'], 'Report', CRITERIA)
        set_id = _set_named('Report').id
        status = update_criteria_set(users['teacher'], set_id, {'name': 'ESSAY'})
        assert status['status'] == 'nameused'
        assert db.session.get(CriteriaSet, set_id).name == 'Report'

    def test_rename_to_empty(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        status = update_criteria_set(users['teacher'], _set_named('Essay').id, {'name': ' '})
        assert status['status'] == 'noname'

    def test_rename_hits_unique_index(self, users, monkeypatch):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        save_criteria_set(users['teacher'], 'Report', CRITERIA)
        set_id = _set_named('Report').id
        monkeypatch.setattr(logic, 'is_name_used', lambda name, exclude_id=None: False)

        status = update_criteria_set(users['teacher'], set_id, {'name': 'ESSAY'})
        assert status['status'] == 'nameused'
        assert status['title'] == 'Update criteria set'
        assert db.session.get(CriteriaSet, set_id).name == 'Report'

    def test_unknown_field(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        with pytest.raises(InvalidParameter):
            update_criteria_set(users['teacher'], _set_named('Essay').id, {'owner_id': users['teacher2'].id})

    def test_other_teacher_cannot_update(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA, shared=True)
        set_id = _set_named('Essay').id
        with pytest.raises(PermissionDenied):
            update_criteria_set(users['teacher2'], set_id, {'name': 'Stolen'})
        assert db.session.get(CriteriaSet, set_id).name == 'Essay'

    def test_student_cannot_update(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        set_id = _set_named('Essay').id
        with pytest.raises(PermissionDenied):
            update_criteria_set(users['student'], set_id, {'shared': True})
        assert db.session.get(CriteriaSet, set_id).shared is False

    def test_admin_can_update_any(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        status = update_criteria_set(users['admin'], _set_named('Essay').id, {'name': 'Renamed'})
        assert status['status'] == 'updated'

    def test_missing_set(self, users):
        with pytest.raises(NotFound):
            update_criteria_set(users['teacher'], 999, {'shared': True})


class TestDeleteCriteriaSet:
    def test_owner_deletes(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        assert delete_criteria_set(users['teacher'], _set_named('Essay').id) is True
        assert CriteriaSet.query.count() == 0
        assert Criterion.query.count() == 0

    def test_other_teacher_cannot_delete(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA, shared=True)
        with pytest.raises(PermissionDenied):
            delete_criteria_set(users['teacher2'], _set_named('Essay').id)
        assert CriteriaSet.query.count() == 1

    def test_student_cannot_delete(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        with pytest.raises(PermissionDenied):
            delete_criteria_set(users['student'], _set_named('Essay').id)
        assert CriteriaSet.query.count() == 1

    def test_admin_deletes_any(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        assert delete_criteria_set(users['admin'], _set_named('Essay').id) is True

    def test_missing_set_returns_false(self, users):
        assert delete_criteria_set(users['teacher'], 12345) is False

    def test_set_used_by_assignment_is_kept(self, app, users, assignment):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        criteria_set = _set_named('Essay')
        assignment.criteria_set_id = criteria_set.id
        db.session.commit()

        assert delete_criteria_set(users['teacher'], criteria_set.id) is False
        assert CriteriaSet.query.count() == 1

    def test_used_set_deleted_when_protection_off(self, app, users, assignment):
        app.config['STRUCTURED_PROTECT_USED_SETS'] = False
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        criteria_set = _set_named('Essay')
        assignment.criteria_set_id = criteria_set.id
        db.session.commit()

        assert delete_criteria_set(users['teacher'], criteria_set.id) is True
        assert assignment.criteria_set_id is None
        assert assignment.structured_enabled is False


class TestListCriteriaSets:
    def test_student_needs_manage_capability(self, users):
        with pytest.raises(PermissionDenied):
            list_criteria_sets(users['student'], include_shared=False)

    def test_shared_sets_of_other_owners(self, users):
        save_criteria_set(users['teacher'], 'Public', CRITERIA, shared=True)
        save_criteria_set(users['teacher'], 'Private', CRITERIA, shared=False)
        save_criteria_set(users['teacher2'], 'Mine', CRITERIA, shared=True)

        sets = list_criteria_sets(users['teacher2'], include_shared=True)
        assert [s['name'] for s in sets['ownedsets']] == ['Mine']
        assert [s['name'] for s in sets['sharedsets']] == ['Public']

        sets = list_criteria_sets(users['teacher2'], include_shared=False)
        assert [s['name'] for s in sets['ownedsets']] == ['Mine']
        assert sets['sharedsets'] == []

    def test_student_sees_shared_sets(self, users):
        save_criteria_set(users['teacher'], 'Public', CRITERIA, shared=True)
        sets = list_criteria_sets(users['student'], include_shared=True)
        assert sets['ownedsets'] == []
        assert [s['name'] for s in sets['sharedsets']] == ['Public']

    def test_admin_manages_every_named_set(self, users):
        save_criteria_set(users['teacher'], 'Beta', CRITERIA)
        save_criteria_set(users['teacher2'], 'Alpha', CRITERIA)
        db.session.add(CriteriaSet(name='', owner_id=users['teacher'].id))
        db.session.commit()

        sets = list_criteria_sets(users['admin'], include_shared=False)
        assert [s['name'] for s in sets['ownedsets']] == ['Alpha', 'Beta']


class TestGetCriteria:
    def test_order_follows_position(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        names = [c['name'] for c in get_criteria(users['teacher'], _set_named('Essay').id)]
        assert names == ['Argument', 'Evidence']

    def test_private_set_of_other_user(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA)
        with pytest.raises(PermissionDenied):
            get_criteria(users['teacher2'], _set_named('Essay').id)

    def test_shared_set_is_readable(self, users):
        save_criteria_set(users['teacher'], 'Essay', CRITERIA, shared=True)
        assert len(get_criteria(users['student'], _set_named('Essay').id)) == 2

    def test_missing_set(self, users):
        with pytest.raises(NotFound):
            get_criteria(users['teacher'], 42)


def test_normalise_name():
    assert normalise_name('  essay ') == 'Essay'
    assert normalise_name('') == ''
    assert normalise_name(None) == ''
