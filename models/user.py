from extensions import db
from sqlalchemy import CheckConstraint

class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False)
    nickname = db.Column(db.String(100), nullable=True, index=True)
    role = db.Column(db.String, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    criteria_sets = db.relationship('CriteriaSet', backref='owner', lazy=True)

    __table_args__ = (
        CheckConstraint("role IN ('student', 'teacher', 'admin')", name="check_role"),
    )

    def to_dict(self):
        return {'id': self.id, 'code': self.code, 'nickname': self.nickname, 'role': self.role}
