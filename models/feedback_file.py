# models/feedback_file.py

from datetime import datetime
from extensions import db


class FeedbackFile(db.Model):
    __tablename__ = 'feedback_files'
    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id', ondelete='CASCADE'), nullable=False)
    grade_id = db.Column(db.Integer, db.ForeignKey('grades.id', ondelete='CASCADE'), nullable=False)
    filename = db.Column(db.String(255), nullable=False)
    mimetype = db.Column(db.String(255), nullable=True)
    size = db.Column(db.Integer, nullable=False, default=0)
    path = db.Column(db.String(1024), nullable=False)
    timemodified = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('grade_id', 'filename', name='unique_grade_filename'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'filename': self.filename,
            'mimetype': self.mimetype,
            'size': self.size,
        }
