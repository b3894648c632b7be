from timegrid.core.models.tenant import Tenant
from timegrid.core.models.institution_settings import InstitutionSettings
from timegrid.core.models.class_model import SchoolClass
from timegrid.core.models.teacher import Teacher
from timegrid.core.models.school_subject import SchoolSubject
from timegrid.core.models.timetable import Timetable, TimetablePeriod

__all__ = [
    "InstitutionSettings",
    "SchoolClass",
    "SchoolSubject",
    "Teacher",
    "Tenant",
    "Timetable",
    "TimetablePeriod",
]
