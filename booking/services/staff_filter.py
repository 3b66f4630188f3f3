"""
staff_filter.py
---------------
Narrows the staff roster to the members who may take a request.

There is no staff-to-service skill mapping: every active staff member is
considered qualified for every service.
"""


def qualified_staff(roster, staff_id=None):
    """
    - staff_id given: that member alone if active, else [].
    - staff_id None ("any available"): every active member, ordered by id.
    """
    if staff_id is not None:
        for member in roster:
            if str(member.pk) == str(staff_id):
                return [member] if member.is_active else []
        return []
    return sorted((m for m in roster if m.is_active), key=lambda m: m.pk)
