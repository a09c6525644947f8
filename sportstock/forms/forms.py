from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField, SubmitField, FloatField, TextAreaField, SelectField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional, URL, Length
from wtforms_sqlalchemy.fields import QuerySelectField

from sportstock.models.equipment import Equipment, EquipmentCategory

REQUEST_TYPE_CHOICES = [
    ('item', 'New item'),
    ('repair', 'Repair / replace'),
    ('purchase', 'Purchase'),
    ('category', 'New category'),
]

STATUS_CHOICES = [
    ('new', 'New'),
    ('in_use', 'In use'),
    ('broken', 'Broken'),
]

ROLE_CHOICES = [
    ('user', 'User'),
    ('admin', 'Administrator'),
    ('blocked', 'Blocked'),
]


def _categories():
    return EquipmentCategory.query.order_by(EquipmentCategory.name)


def _working_equipment():
    return Equipment.query.filter_by(status='in_use').order_by(Equipment.name)


# Request submission form; per-type rules live in services.request_types
class RequestForm(FlaskForm):
    type = SelectField('Request type', choices=REQUEST_TYPE_CHOICES, default='item')
    name = StringField('Name', validators=[Optional(), Length(max=150)])
    description = TextAreaField('Description', validators=[Optional()])
    quantity = IntegerField('Quantity', default=1, validators=[Optional(), NumberRange(min=1)])
    category = QuerySelectField('Category', query_factory=_categories, get_label='name',
                                allow_blank=True, blank_text='Select a category...')
    equipment = QuerySelectField('Equipment',
                                 query_factory=_working_equipment,
                                 get_label=lambda e: f'{e.name} ({e.quantity} in stock)',
                                 allow_blank=True, blank_text='Select equipment...')
    best_price = FloatField('Best price found', validators=[Optional(), NumberRange(min=0)])
    seller = StringField('Seller', validators=[Optional(), Length(max=100)])
    purchase_url = StringField('Product link', validators=[Optional(), URL()])
    submit = SubmitField('Submit request')


# Category creation form (admin)
class CategoryForm(FlaskForm):
    name = StringField('Category name', validators=[DataRequired(), Length(max=100)])
    submit = SubmitField('Add category')


# Equipment item form (admin, inside a category)
class EquipmentItemForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    description = TextAreaField('Description', validators=[Optional()])
    quantity = IntegerField('Quantity', validators=[InputRequired(), NumberRange(min=0)])
    status = SelectField('Status', choices=STATUS_CHOICES, default='new')
    owner = StringField('Owner', validators=[Optional(), Length(max=150)])
    submit = SubmitField('Save')


# Role change form (admin users page)
class RoleForm(FlaskForm):
    role = SelectField('Role', choices=ROLE_CHOICES, validators=[DataRequired()])
    submit = SubmitField('Update role')
