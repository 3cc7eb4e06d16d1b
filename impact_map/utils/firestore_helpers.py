"""
Firestore query helpers shared by the real client and the mock database.
"""


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply a single field filter.

    Positional arguments work with both firebase_admin (which only warns
    about the newer FieldFilter API) and the mock database.

    Usage:
        query = where_filter(collection, "status", "==", "Pending")
    """
    return query.where(field_path, op_string, value)
