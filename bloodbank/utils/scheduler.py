from bloodbank import db, scheduler
from bloodbank.models.donor import Donor
from bloodbank.models.drive import DonationDrive, OPEN_DRIVE_STATUSES
from bloodbank.utils.inventory import expire_outdated_units, low_inventory_groups, available_units_by_group
from bloodbank.utils.notifications import notify_role
from flask import current_app
from datetime import date
import click


def update_drive_statuses(today=None):
    """
    Move open drives along upcoming -> ongoing -> completed by their dates
    """
    today = today or date.today()
    changed = 0
    for drive in DonationDrive.query.filter(DonationDrive.status.in_(OPEN_DRIVE_STATUSES)).all():
        status = drive.status_for(today)
        if status != drive.status:
            current_app.logger.info(f"Donation drive {drive.id} moved from {drive.status} to {status}")
            drive.status = status
            changed += 1
    return changed


def refresh_donor_eligibility():
    changed = 0
    for donor in Donor.query.all():
        was_eligible = donor.is_eligible
        donor.refresh_eligibility()
        if donor.is_eligible != was_eligible:
            changed += 1
    return changed


def alert_low_inventory():
    low_groups = low_inventory_groups()
    if not low_groups:
        return []

    available = available_units_by_group()
    details = ', '.join(f"{bg} ({available.get(bg, (0, 0))[0]} units)" for bg in low_groups)
    notify_role('admin', 'Low blood inventory',
                f"Stock is below {current_app.config['LOW_INVENTORY_THRESHOLD']} units for: {details}",
                notification_type='inventory_low', priority='high')
    return low_groups


def run_maintenance(today=None):
    """
    Daily housekeeping: expire outdated inventory, refresh donor eligibility,
    advance drive statuses and warn admins about low stock

    Returns:
        Dict with the number of records each step touched
    """
    try:
        expired = expire_outdated_units(today)
        eligibility_changes = refresh_donor_eligibility()
        drives_updated = update_drive_statuses(today)
        low_groups = alert_low_inventory()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Maintenance run failed: {str(e)}")
        raise

    current_app.logger.info(
        f"Maintenance run: {expired} inventory records expired, {drives_updated} drives updated, "
        f"{eligibility_changes} donor eligibility changes, low groups: {low_groups or 'none'}"
    )
    return {
        'expiredInventory': expired,
        'eligibilityChanges': eligibility_changes,
        'drivesUpdated': drives_updated,
        'lowInventoryGroups': low_groups,
    }


def maintenance_job(app):
    with app.app_context():
        run_maintenance()


def register_commands(app):
    @app.cli.command('run-maintenance')
    def run_maintenance_command():
        """Expire inventory, update drives and send low stock alerts now."""
        result = run_maintenance()
        for key, value in result.items():
            click.echo(f"{key}: {value}")


def start_scheduler(app):
    """
    Start the background scheduler for automated tasks
    """
    if not scheduler.running:
        scheduler.add_job(
            func=maintenance_job,
            args=[app],
            trigger='interval',
            hours=24,  # Run once a day
            id='daily_maintenance_job',
            replace_existing=True
        )

        scheduler.start()
        app.logger.info("Background scheduler started")
