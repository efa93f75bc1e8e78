# models/criteria_set.py

from extensions import db


class CriteriaSet(db.Model):
    __tablename__ = 'criteria_sets'
    id = db.Column(db.Integer, primary_key=True)
    # Пустое имя = собственный набор задания, в списках не показывается
    name = db.Column(db.String(255), nullable=False, default='')
    # Ключ уникальности, NULL у безымянных наборов
    name_lowercase = db.Column(db.String(255), unique=True, nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    shared = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    criteria = db.relationship(
        'Criterion',
        backref='criteria_set',
        order_by='Criterion.position',
        cascade="all, delete-orphan",
        lazy='select'
    )

    @property
    def is_named(self):
        return bool(self.name)

    def summary(self):
        return {'id': self.id, 'name': self.name, 'shared': bool(self.shared), 'owner': self.owner_id}
