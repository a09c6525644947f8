# sportstock/models/__init__.py
from sportstock.models.user import User, Profile, EventLog, ROLES
from sportstock.models.equipment import Equipment, EquipmentCategory, EQUIPMENT_STATUSES
from sportstock.models.request import Request, PriceHistory, REQUEST_TYPES, REQUEST_STATUSES

__all__ = [
    'User', 'Profile', 'EventLog', 'ROLES',
    'Equipment', 'EquipmentCategory', 'EQUIPMENT_STATUSES',
    'Request', 'PriceHistory', 'REQUEST_TYPES', 'REQUEST_STATUSES',
]
