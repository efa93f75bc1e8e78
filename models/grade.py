# models/grade.py

from datetime import datetime
from extensions import db


class Grade(db.Model):
    __tablename__ = 'grades'
    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id', ondelete='CASCADE'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    grader_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    grade = db.Column(db.Float, nullable=True)
    timemodified = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship('User', foreign_keys=[student_id])
    grader = db.relationship('User', foreign_keys=[grader_id])

    comments = db.relationship('FeedbackComment', backref='grade', lazy=True, cascade="all, delete-orphan")
    files = db.relationship('FeedbackFile', backref='grade', lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint('assignment_id', 'student_id', name='unique_grade'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'assignment_id': self.assignment_id,
            'student_id': self.student_id,
            'grader_id': self.grader_id,
            'grade': self.grade,
        }
