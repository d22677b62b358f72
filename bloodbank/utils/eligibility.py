from datetime import date, datetime, timedelta

MIN_AGE = 18
MAX_AGE = 65
MIN_WEIGHT = 50
MIN_HEMOGLOBIN = 12.5


def calculate_age(date_of_birth, today=None):
    """
    Full years between date_of_birth and today
    """
    if date_of_birth is None:
        return None
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    today = today or date.today()
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def check_eligibility(age=None, weight=None, last_donation_date=None, hemoglobin=None,
                      interval_days=90, today=None):
    """
    Check whether someone may donate blood

    Args:
        age: Age in full years
        weight: Weight in kg
        last_donation_date: Date of the previous donation, if any
        hemoglobin: Hemoglobin level in g/dL, checked only when given
        interval_days: Minimum days between two donations
        today: Reference date, defaults to the current date

    Returns:
        Tuple (is_eligible, reasons, next_eligible_date). reasons lists every
        failed rule; next_eligible_date is set only when the donation interval
        is the blocking rule.
    """
    today = today or date.today()
    reasons = []
    next_eligible_date = None

    if age is None:
        reasons.append("Age or date of birth is required")
    elif age < MIN_AGE:
        reasons.append(f"Age must be at least {MIN_AGE} years")
    elif age > MAX_AGE:
        reasons.append(f"Age must not exceed {MAX_AGE} years")

    if weight is None:
        reasons.append("Weight is required")
    elif weight < MIN_WEIGHT:
        reasons.append(f"Weight must be at least {MIN_WEIGHT} kg")

    if hemoglobin is not None and hemoglobin < MIN_HEMOGLOBIN:
        reasons.append(f"Hemoglobin must be at least {MIN_HEMOGLOBIN} g/dL")

    if last_donation_date:
        if isinstance(last_donation_date, datetime):
            last_donation_date = last_donation_date.date()
        days_since_last_donation = (today - last_donation_date).days
        if days_since_last_donation < interval_days:
            next_eligible_date = last_donation_date + timedelta(days=interval_days)
            reasons.append(
                f"You must wait {interval_days - days_since_last_donation} more days before donating again"
            )

    return not reasons, reasons, next_eligible_date
