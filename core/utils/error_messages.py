"""
User-facing Error Messages
==========================

Maps raw database/backend error text to friendly messages so schema and
constraint names never reach the user. Matching is on lowercase substrings,
first hit wins.
"""

DUPLICATE_MOBILE_MESSAGE = 'This mobile number is already registered. Please use a different mobile number.'
NOT_PERMITTED_MESSAGE = 'You do not have permission to perform this action.'
GENERIC_ERROR_MESSAGE = 'An unexpected error occurred. Please try again or contact support.'

FRIENDLY_ERROR_MESSAGES = [
    (('already been registered',), DUPLICATE_MOBILE_MESSAGE),
    (('already exists',), DUPLICATE_MOBILE_MESSAGE),
    (('duplicate', 'mobile'), DUPLICATE_MOBILE_MESSAGE),
    (('unique', 'mobile'), DUPLICATE_MOBILE_MESSAGE),
    (('duplicate',), 'A record with this information already exists.'),
    (('unique constraint',), 'A record with this information already exists.'),
    (('violates not-null constraint',), 'A required field is missing. Please fill in all required fields.'),
    (('not null constraint',), 'A required field is missing. Please fill in all required fields.'),
    (('check constraint',), 'One of the values provided is invalid. Please review your input.'),
    (('foreign key',), 'This record references data that does not exist or was removed.'),
    (('row-level security',), NOT_PERMITTED_MESSAGE),
    (('permission denied',), NOT_PERMITTED_MESSAGE),
    (('jwt',), 'Your session has expired. Please log in again.'),
    (('token',), 'Your session has expired. Please log in again.'),
    (('network',), 'Network error. Please check your connection and try again.'),
    (('connection',), 'Network error. Please check your connection and try again.'),
]


def get_user_friendly_error(error):
    """
    Translate an exception (or raw message) into a safe message

    >>> get_user_friendly_error(Exception('UNIQUE constraint failed: core_user.mobile'))
    'This mobile number is already registered. Please use a different mobile number.'
    """
    message = str(error or '').lower()

    for needles, friendly in FRIENDLY_ERROR_MESSAGES:
        if all(needle in message for needle in needles):
            return friendly

    return GENERIC_ERROR_MESSAGE
