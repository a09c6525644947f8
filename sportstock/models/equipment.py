from sportstock.extensions import db
from sportstock.utils import utcnow

EQUIPMENT_STATUSES = ('new', 'in_use', 'broken')


class EquipmentCategory(db.Model):
    __tablename__ = 'equipment_categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    equipment = db.relationship('Equipment', backref='category', lazy='dynamic')

    def __repr__(self):
        return f"EquipmentCategory('{self.name}')"


class Equipment(db.Model):
    __tablename__ = 'equipment'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(10), nullable=False, default='new', index=True)
    # Weak reference: category deletion nulls it explicitly.
    category_id = db.Column(db.Integer, db.ForeignKey('equipment_categories.id'), nullable=True, index=True)
    owner = db.Column(db.String(150))
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.CheckConstraint('quantity >= 0', name='ck_equipment_quantity'),
        db.CheckConstraint("status IN ('new', 'in_use', 'broken')", name='ck_equipment_status'),
    )

    def __repr__(self):
        return f"Equipment('{self.name}', {self.quantity}, '{self.status}')"

    @property
    def category_name(self):
        return self.category.name if self.category else None
