# models/feedback_comment.py

from extensions import db
from sqlalchemy import CheckConstraint

FORMAT_MOODLE = 0
FORMAT_HTML = 1
FORMAT_PLAIN = 2
FORMAT_MARKDOWN = 4


class FeedbackComment(db.Model):
    __tablename__ = 'feedback_comments'
    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id', ondelete='CASCADE'), nullable=False)
    grade_id = db.Column(db.Integer, db.ForeignKey('grades.id', ondelete='CASCADE'), nullable=False)
    criterion_id = db.Column(db.Integer, db.ForeignKey('criteria.id', ondelete='CASCADE'), nullable=False)
    comment_text = db.Column(db.Text, nullable=True)
    comment_format = db.Column(db.Integer, nullable=False, default=FORMAT_HTML)

    criterion = db.relationship('Criterion')

    __table_args__ = (
        db.UniqueConstraint('grade_id', 'criterion_id', name='unique_grade_criterion'),
        CheckConstraint("comment_format IN (0, 1, 2, 4)", name="check_comment_format"),
    )

    def to_dict(self):
        return {
            'criterion': self.criterion_id,
            'text': self.comment_text or '',
            'format': self.comment_format,
        }
