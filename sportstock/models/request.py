from sportstock.extensions import db
from sportstock.utils import utcnow

REQUEST_TYPES = ('item', 'repair', 'purchase', 'category')
REQUEST_STATUSES = ('pending', 'approved', 'rejected')
RESOLVED_STATUSES = ('approved', 'rejected')


class Request(db.Model):
    __tablename__ = 'requests'
    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(10), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    quantity = db.Column(db.Integer)
    category_id = db.Column(db.Integer, db.ForeignKey('equipment_categories.id'), nullable=True)
    equipment_id = db.Column(db.Integer, db.ForeignKey('equipment.id'), nullable=True)
    status = db.Column(db.String(10), nullable=False, default='pending', index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    best_price = db.Column(db.Float)
    seller = db.Column(db.String(100))
    purchase_url = db.Column(db.String(500))
    bought = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, index=True)

    category = db.relationship('EquipmentCategory', lazy='joined')
    equipment = db.relationship('Equipment', lazy='joined')
    user = db.relationship('User', backref=db.backref('requests', lazy='dynamic'))

    __table_args__ = (
        db.CheckConstraint("type IN ('item', 'repair', 'purchase', 'category')", name='ck_requests_type'),
        db.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='ck_requests_status'),
    )

    def __repr__(self):
        return f"Request({self.id}, '{self.type}', '{self.name}', '{self.status}')"

    @property
    def is_resolved(self):
        return self.status in RESOLVED_STATUSES

    @property
    def has_enough_stock(self):
        """False only for repair requests asking for more than is in stock."""
        if self.type != 'repair' or not self.equipment or not self.quantity:
            return True
        return self.equipment.quantity >= self.quantity

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'description': self.description,
            'quantity': self.quantity,
            'category_id': self.category_id,
            'category': self.category.name if self.category else None,
            'equipment_id': self.equipment_id,
            'equipment': self.equipment.name if self.equipment else None,
            'status': self.status,
            'user_id': self.user_id,
            'best_price': self.best_price,
            'seller': self.seller,
            'purchase_url': self.purchase_url,
            'bought': self.bought,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class PriceHistory(db.Model):
    __tablename__ = 'price_history'
    id = db.Column(db.Integer, primary_key=True)
    # Plain column so the history outlives the swept request.
    request_id = db.Column(db.Integer, nullable=False, index=True)
    price = db.Column(db.Float, nullable=False)
    seller = db.Column(db.String(100), nullable=False, default='Unknown')
    recorded_at = db.Column(db.DateTime, default=utcnow, index=True)

    def __repr__(self):
        return f"PriceHistory(request={self.request_id}, {self.price}, '{self.seller}')"
