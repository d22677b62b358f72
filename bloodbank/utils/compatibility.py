"""
Blood group compatibility helpers
Determines which donor blood groups can give red cells to which recipients
"""

BLOOD_GROUPS = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']

# Donor group -> recipient groups it can donate to
COMPATIBILITY = {
    'O-': ['O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+'],  # Universal donor
    'O+': ['O+', 'A+', 'B+', 'AB+'],
    'A-': ['A-', 'A+', 'AB-', 'AB+'],
    'A+': ['A+', 'AB+'],
    'B-': ['B-', 'B+', 'AB-', 'AB+'],
    'B+': ['B+', 'AB+'],
    'AB-': ['AB-', 'AB+'],
    'AB+': ['AB+'],  # Universal recipient
}


def is_valid_blood_group(blood_group):
    return blood_group in COMPATIBILITY


def is_compatible(donor_blood_group, recipient_blood_group):
    """
    Check if a donor blood group can give to a recipient

    Args:
        donor_blood_group: Donor's blood group (e.g., 'O+')
        recipient_blood_group: Recipient's blood group (e.g., 'A+')

    Returns:
        Boolean: True if compatible, False otherwise
    """
    if donor_blood_group not in COMPATIBILITY:
        return False

    return recipient_blood_group in COMPATIBILITY[donor_blood_group]


def get_compatible_donors(recipient_blood_group):
    """
    Get the blood groups that can donate to a recipient, in BLOOD_GROUPS order
    """
    return [donor_group for donor_group in BLOOD_GROUPS
            if recipient_blood_group in COMPATIBILITY[donor_group]]


def get_compatible_recipients(donor_blood_group):
    return list(COMPATIBILITY.get(donor_blood_group, []))
