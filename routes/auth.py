# routes/auth.py
# Маршруты для авторизации

import logging
from functools import wraps

from flask import Blueprint, jsonify, request, session

from extensions import db
from models.user import User # Импортируем нашу модель User

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


def current_user():
    user_id = session.get('user_id')
    return db.session.get(User, user_id) if user_id else None


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user() is None:
            session.clear()
            return jsonify({'error': 'Login required'}), 401
        return f(*args, **kwargs)
    return decorated_function


@auth_bp.route('/login', methods=['POST'])
def login():
    user_code = request.form.get('code') or (request.get_json(silent=True) or {}).get('code')
    if not user_code:
        return jsonify({'error': 'Please enter your code.'}), 400

    # Ищем пользователя в базе данных по коду
    user = User.query.filter_by(code=user_code).first()
    if not user:
        logger.warning('Failed login attempt')
        return jsonify({'error': 'Invalid access code.'}), 401

    session.clear() # Очищаем старую сессию
    session['user_id'] = user.id
    session['user_role'] = user.role
    logger.info('User %s logged in', user.id)
    return jsonify(user.to_dict())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'ok'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify(current_user().to_dict())
