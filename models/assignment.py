# models/assignment.py

from extensions import db


class Assignment(db.Model):
    __tablename__ = 'assignments'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    course = db.Column(db.String(255), nullable=True)
    structured_enabled = db.Column(db.Boolean, nullable=False, default=True)
    # Собственный (безымянный) набор критериев задания
    criteria_set_id = db.Column(db.Integer, db.ForeignKey('criteria_sets.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    criteria_set = db.relationship('CriteriaSet')
    grades = db.relationship('Grade', backref='assignment', lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'course': self.course,
            'structured_enabled': bool(self.structured_enabled),
            'criteria_set_id': self.criteria_set_id,
        }
