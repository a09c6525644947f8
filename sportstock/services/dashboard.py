"""Derived views for the dashboards: counts, recent rows, cost totals, price series."""
from sportstock.models.equipment import Equipment, EquipmentCategory, EQUIPMENT_STATUSES
from sportstock.models.request import PriceHistory
from sportstock.services.request_service import approved_purchases

STATUS_LABELS = {
    'new': 'New',
    'in_use': 'In use',
    'broken': 'Broken',
}


def _get(item, name, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def status_counts(equipment):
    """Number of equipment rows per status (rows, not units)."""
    counts = {status: 0 for status in EQUIPMENT_STATUSES}
    for item in equipment:
        status = _get(item, 'status')
        if status in counts:
            counts[status] += 1
    return counts


def recent(items, n, key='created_at'):
    return sorted(items, key=lambda item: _get(item, key), reverse=True)[:n]


def purchase_line_total(purchase):
    price = _get(purchase, 'best_price') or 0
    quantity = _get(purchase, 'quantity') or 1
    return price * quantity


def purchase_total(purchases):
    return sum(purchase_line_total(p) for p in purchases)


def purchase_rows(purchases):
    rows = []
    for purchase in purchases:
        rows.append({
            'id': _get(purchase, 'id'),
            'name': _get(purchase, 'name'),
            'seller': _get(purchase, 'seller'),
            'purchase_url': _get(purchase, 'purchase_url'),
            'bought': bool(_get(purchase, 'bought')),
            'unit_price': _get(purchase, 'best_price') or 0,
            'quantity': _get(purchase, 'quantity') or 1,
            'total': purchase_line_total(purchase),
        })
    return rows


def filter_by_text(items, text, fields=('name', 'description')):
    if not text:
        return list(items)
    needle = text.strip().lower()
    return [item for item in items
            if any(needle in (_get(item, f) or '').lower() for f in fields)]


def group_by_category(equipment, categories):
    """[(category, [items])] in category order, then uncategorized items under None."""
    groups = {_get(category, 'id'): [] for category in categories}
    uncategorized = []
    for item in equipment:
        category_id = _get(item, 'category_id')
        if category_id in groups:
            groups[category_id].append(item)
        else:
            uncategorized.append(item)
    result = [(category, groups[_get(category, 'id')]) for category in categories]
    if uncategorized:
        result.append((None, uncategorized))
    return result


def price_series(history):
    """Chart points ordered by ``recorded_at`` ascending."""
    ordered = sorted(history, key=lambda row: _get(row, 'recorded_at'))
    return [{
        'date': _get(row, 'recorded_at').isoformat(),
        'price': _get(row, 'price'),
        'seller': _get(row, 'seller'),
    } for row in ordered]


def equipment_row(item):
    return {
        'id': item.id,
        'name': item.name,
        'quantity': item.quantity,
        'status': item.status,
        'status_label': STATUS_LABELS.get(item.status, item.status),
        'category_id': item.category_id,
        'category': item.category_name,
        'description': item.description,
        'created_at': item.created_at,
    }


# --- Queries feeding the views ---
def load_equipment():
    return [equipment_row(item) for item in
            Equipment.query.order_by(Equipment.created_at.desc(), Equipment.id.desc()).all()]


def load_price_history(request_id):
    rows = (PriceHistory.query
            .filter_by(request_id=request_id)
            .order_by(PriceHistory.recorded_at.asc())
            .all())
    return price_series(rows)


def dashboard_snapshot(equipment, purchases):
    """Dashboard data from equipment rows and approved-purchase rows."""
    return {
        'counts': status_counts(equipment),
        'recent_equipment': recent(equipment, 5),
        'broken_equipment': [item for item in equipment if item['status'] == 'broken'],
        'recent_purchases': purchases,
        'total_items': len(equipment),
    }


def purchases_snapshot(rows):
    return {
        'rows': rows,
        'total_cost': sum(row['total'] for row in rows),
        'bought_count': sum(1 for row in rows if row['bought']),
    }


def load_categories():
    return [{'id': c.id, 'name': c.name}
            for c in EquipmentCategory.query.order_by(EquipmentCategory.name).all()]


def load_purchase_rows(limit=None):
    return purchase_rows(approved_purchases(limit=limit))
