# routes/__init__.py
# Регистрация всех blueprint'ов приложения

from .auth import auth_bp
from .admin import admin_bp
from .main import main_bp
from .webservice import webservice_bp


def register_routes(app):
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(webservice_bp)


__all__ = [
    'register_routes',
    'auth_bp',
    'admin_bp',
    'main_bp',
    'webservice_bp',
]
