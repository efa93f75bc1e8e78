# app.py
# Основной файл Flask-приложения с использованием паттерна Application Factory

import logging
import os

from flask import Flask, jsonify

from config import Config
from errors import StructuredFeedbackError
from extensions import db, migrate

# Важно импортировать модели здесь, чтобы Alembic (Migrate) мог их видеть
from models import User, Assignment, Grade, CriteriaSet, Criterion, FeedbackComment, FeedbackFile

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    # Создаем экземпляр приложения
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    os.makedirs(app.config['FEEDBACK_FILES_DIR'], exist_ok=True)

    # --- Инициализируем расширения С ПРИЛОЖЕНИЕМ ---
    db.init_app(app)
    migrate.init_app(app, db)

    # --- Регистрируем наши Blueprints (маршруты) ---
    from routes import register_routes
    register_routes(app)

    @app.errorhandler(StructuredFeedbackError)
    def handle_feedback_error(error):
        db.session.rollback()
        if error.status_code == 403:
            logger.warning('Permission denied: %s', error.message)
        return jsonify({'error': True, 'exception': error.to_dict()}), error.status_code

    @app.cli.command('init-db')
    def init_db():
        """Создает таблицы базы данных."""
        db.create_all()
        print('Database tables created.')

    return app


if __name__ == '__main__':
    create_app().run(debug=True)
