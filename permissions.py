# permissions.py
# Права доступа по ролям пользователей

from errors import PermissionDenied

GRADE = 'feedback:grade'
MANAGE_OWN = 'criteriasets:manageown'
PUBLISH = 'criteriasets:publish'
EDIT_ANY = 'criteriasets:editany'
SITE_CONFIG = 'site:config'

ROLE_CAPABILITIES = {
    'student': frozenset(),
    'teacher': frozenset({GRADE, MANAGE_OWN, PUBLISH}),
    'admin': frozenset({GRADE, MANAGE_OWN, PUBLISH, EDIT_ANY, SITE_CONFIG}),
}


def has_capability(user, capability):
    if user is None:
        return False
    return capability in ROLE_CAPABILITIES.get(user.role, frozenset())


def require_capability(user, capability, message=None):
    if not has_capability(user, capability):
        raise PermissionDenied(message or f'Missing capability {capability}')


def is_superuser(user):
    return has_capability(user, SITE_CONFIG)
