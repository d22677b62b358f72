from bloodbank import db
from bloodbank.models.blood import BloodInventory, INVENTORY_STATUSES
from bloodbank.utils.compatibility import BLOOD_GROUPS, get_compatible_donors
from flask import current_app
from sqlalchemy import func
from datetime import date


class InsufficientStockError(Exception):
    def __init__(self, blood_group, units_needed, units_available):
        self.blood_group = blood_group
        self.units_needed = units_needed
        self.units_available = units_available
        super().__init__(
            f"Only {units_available} compatible units available for {blood_group}, {units_needed} needed"
        )


def expire_outdated_units(today=None):
    """
    Mark available and reserved units past their expiry date as expired
    """
    today = today or date.today()
    outdated = BloodInventory.query.filter(
        BloodInventory.status.in_(['available', 'reserved']),
        BloodInventory.expiry_date < today
    ).all()
    for unit in outdated:
        unit.mark_expired()
    if outdated:
        current_app.logger.info(f"Marked {len(outdated)} inventory records as expired")
    return len(outdated)


def inventory_summary(query=None):
    """
    Units per blood group and status, with every blood group present.
    Only available batches count as available; units drawn by requests count as used.
    """
    threshold = current_app.config['LOW_INVENTORY_THRESHOLD']
    summary = {bg: {status: 0 for status in INVENTORY_STATUSES} for bg in BLOOD_GROUPS}

    query = query if query is not None else BloodInventory.query
    for unit in query.all():
        group = summary.setdefault(unit.blood_group, {status: 0 for status in INVENTORY_STATUSES})
        group[unit.status] += unit.units_available
        if unit.status == 'available':
            group['reserved'] += unit.units_reserved
        group['used'] += unit.units_drawn

    for group in summary.values():
        group['total'] = sum(group[status] for status in INVENTORY_STATUSES)
        group['low'] = group['available'] < threshold
    return summary


def available_units_by_group():
    rows = db.session.query(
        BloodInventory.blood_group,
        func.sum(BloodInventory.units_available),
        func.count(BloodInventory.id)
    ).filter(
        BloodInventory.status == 'available'
    ).group_by(BloodInventory.blood_group).all()
    return {blood_group: (int(units or 0), batches) for blood_group, units, batches in rows}


def low_inventory_groups():
    threshold = current_app.config['LOW_INVENTORY_THRESHOLD']
    available = available_units_by_group()
    return [bg for bg in BLOOD_GROUPS if available.get(bg, (0, 0))[0] < threshold]


def compatible_units(recipient_blood_group, today=None):
    """
    Usable units a recipient can receive, first-expiring first
    """
    today = today or date.today()
    return BloodInventory.query.filter(
        BloodInventory.blood_group.in_(get_compatible_donors(recipient_blood_group)),
        BloodInventory.status == 'available',
        BloodInventory.units_available > 0,
        BloodInventory.expiry_date >= today
    ).order_by(BloodInventory.expiry_date.asc(), BloodInventory.id.asc()).all()


def allocate_units(recipient_blood_group, units_needed, today=None):
    """
    Take units_needed compatible units out of stock, first-expiring first.
    Batches drawn down in full are marked used. Nothing is changed when stock is short.

    Returns:
        List of (inventory record, units taken) pairs
    """
    candidates = compatible_units(recipient_blood_group, today)
    total = sum(unit.units_available for unit in candidates)
    if total < units_needed:
        raise InsufficientStockError(recipient_blood_group, units_needed, total)

    allocated = []
    remaining = units_needed
    for unit in candidates:
        take = min(unit.units_available, remaining)
        unit.draw(take)
        allocated.append((unit, take))
        remaining -= take
        if remaining == 0:
            break
    return allocated
