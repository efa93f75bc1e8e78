# config.py
# Конфигурация приложения Flask

import os
from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, '.env'))


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    BASE_DIR = BASE_DIR
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        f'sqlite:///{os.path.join(BASE_DIR, "instance", "structured.db")}'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get('SECRET_KEY', 'your-secret-key-change-me')  # Замени на случайный ключ в продакшене

    # Хранилище файлов, прикрепленных к отзывам
    FEEDBACK_FILES_DIR = os.environ.get('FEEDBACK_FILES_DIR', os.path.join(BASE_DIR, 'instance', 'feedback_files'))

    # Критерий по умолчанию для нового задания
    STRUCTURED_DEFAULT_CRITNAME = os.environ.get('STRUCTURED_DEFAULT_CRITNAME', '')
    STRUCTURED_DEFAULT_CRITDESC = os.environ.get('STRUCTURED_DEFAULT_CRITDESC', '')

    # Запрет удаления набора, который используется в задании
    STRUCTURED_PROTECT_USED_SETS = _env_bool('STRUCTURED_PROTECT_USED_SETS', True)

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test'
    STRUCTURED_DEFAULT_CRITNAME = ''
    STRUCTURED_DEFAULT_CRITDESC = ''
    STRUCTURED_PROTECT_USED_SETS = True
