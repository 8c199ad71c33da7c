from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    PRESIDENT = "PRESIDENT"
    SECRETARY = "SECRETARY"
    TREASURER = "TREASURER"
    METER_READER = "METER_READER"


class OfficerRole(str, Enum):
    """Roles a society elects; an active assignment overrides the account role."""

    PRESIDENT = "PRESIDENT"
    SECRETARY = "SECRETARY"


class Language(str, Enum):
    EN = "EN"
    SI = "SI"
    TA = "TA"
