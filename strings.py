# strings.py
# Тексты для пользователя (заголовок / сообщение / кнопка)

STRINGS = {
    'pluginname': 'Structured feedback',
    'continue': 'Continue',
    'ok': 'OK',
    'error': 'Error',
    'criteriasetsave': 'Save criteria set',
    'criteriasetsaved': 'The criteria set "{name}" has been saved.',
    'criteriasetnotsaved': 'The criteria set could not be saved.',
    'criteriasetupdate': 'Update criteria set',
    'criteriasetupdated': 'The criteria set "{name}" has been updated.',
    'criteriasetnotupdated': 'The criteria set could not be updated.',
    'criteriasetnoname': 'Please provide a name for the criteria set.',
    'criteriasetnameused': ('Unfortunately this name is already used for another criteria set, '
                            'and must be unique across the whole site. Please try a different name.'),
    'criteriasetnocriteria': 'There are no named criteria to save. Please name at least one criterion.',
    'criteriasetuse': 'Use criteria set',
    'criteriasetused': 'The criteria set "{name}" has been copied into this assignment.',
    'criteriaused': ('Feedback has already been given for one or more criteria in this assignment, '
                     'so a saved criteria set cannot be copied.'),
    'criteriontitle': '{name}: {desc}',
    'structuredfilename': 'structured.html',
}


def get_string(key, **params):
    text = STRINGS[key]
    if params:
        return text.format(**params)
    return text
