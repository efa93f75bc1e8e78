# models/criterion.py

from extensions import db

class Criterion(db.Model):
    __tablename__ = 'criteria'
    id = db.Column(db.Integer, primary_key=True)
    criteria_set_id = db.Column(db.Integer, db.ForeignKey('criteria_sets.id', ondelete='CASCADE'), nullable=False)
    # Порядок внутри набора
    position = db.Column(db.Integer, nullable=False, default=0)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'description': self.description or ''}
