"""
Seed data: the "General" view, the starter university list and the full
General column catalogue.

``seed_database`` is idempotent. Existing universities (matched by name)
and columns (matched by key) are reused; the basic cells are rewritten on
every run.
"""

import logging

from unidash.models import db
from unidash.models.sheet import SheetColumn, University, View
from unidash.services import column_service, value_service

logger = logging.getLogger(__name__)

GENERAL_VIEW = "General"

GENERAL_COLUMNS = [
    {"key": "nr", "label": "Nr", "type": "number", "section": "Basics", "pinned": True, "order_index": 0},
    {"key": "uni_name", "label": "Uni Name", "type": "text", "section": "Basics", "pinned": True, "order_index": 1},
    {"key": "cntr", "label": "Cntr.", "type": "text", "section": "Basics", "pinned": True, "order_index": 2},
    {"key": "state", "label": "State", "type": "text", "section": "Basics", "order_index": 3},
    {"key": "city", "label": "City", "type": "text", "section": "Basics", "order_index": 4},
    {"key": "uni_type", "label": "Uni type", "type": "select", "section": "Basics", "select_options": ["Public", "Private"], "order_index": 5},
    {"key": "web", "label": "Web", "type": "link", "section": "Basics", "order_index": 6},
    {"key": "best_departments", "label": "Best Departments", "type": "long-text", "section": "Academics", "order_index": 7},
    {"key": "program_of_interest", "label": "Program of Interest", "type": "text", "section": "Academics", "order_index": 8},
    {"key": "program_length", "label": "Program Length", "type": "text", "section": "Academics", "order_index": 9},
    {"key": "entry_requirements", "label": "Entry Requirements", "type": "long-text", "section": "Admissions", "order_index": 10},
    {"key": "acceptance_rate", "label": "Acceptance Rate", "type": "number", "section": "Admissions", "order_index": 11},
    {"key": "language_requirement", "label": "Language Requirement", "type": "text", "section": "Admissions", "order_index": 12},
    {"key": "application_deadlines", "label": "Application Deadlines", "type": "date", "section": "Admissions", "order_index": 13},
    {"key": "deadline_type", "label": "Deadline Type", "type": "text", "section": "Admissions", "order_index": 14},
    {"key": "tuition_fees_yearly", "label": "Tuition Fees (Yearly)", "type": "number", "section": "Costs", "order_index": 15},
    {"key": "financial_aid_available", "label": "Financial Aid Available", "type": "boolean", "section": "Costs", "order_index": 16},
    {"key": "type_of_aid", "label": "Type of Aid", "type": "text", "section": "Costs", "order_index": 17},
    {"key": "aid_coverage", "label": "Aid Coverage", "type": "text", "section": "Costs", "order_index": 18},
    {"key": "average_aid_given", "label": "Average Aid Given", "type": "number", "section": "Costs", "order_index": 19},
    {"key": "application_for_aid", "label": "Application for Aid", "type": "text", "section": "Costs", "order_index": 20},
    {"key": "cost_of_living_estimate", "label": "Cost of Living Estimate", "type": "number", "section": "Costs", "order_index": 21},
    {"key": "startup_grants", "label": "Start-up Grants", "type": "text", "section": "Costs", "order_index": 22},
    {"key": "financial_notes", "label": "Financial Notes", "type": "long-text", "section": "Costs", "order_index": 23},
    {"key": "on_campus_housing", "label": "On-Campus Housing", "type": "boolean", "section": "Housing", "order_index": 24},
    {"key": "housing_cost_monthly", "label": "Housing Cost (Monthly)", "type": "number", "section": "Housing", "order_index": 25},
    {"key": "off_campus_options", "label": "Off-Campus Options", "type": "text", "section": "Housing", "order_index": 26},
    {"key": "average_rent", "label": "Average Rent", "type": "number", "section": "Housing", "order_index": 27},
    {"key": "meal_plans", "label": "Meal Plans", "type": "text", "section": "Housing", "order_index": 28},
    {"key": "transportation", "label": "Transportation", "type": "text", "section": "Housing", "order_index": 29},
    {"key": "safety_rating", "label": "Safety Rating", "type": "number", "section": "Housing", "order_index": 30},
    {"key": "student_community", "label": "Student Community", "type": "text", "section": "Housing", "order_index": 31},
    {"key": "health_insurance_required", "label": "Health Insurance Required", "type": "boolean", "section": "Visa", "order_index": 32},
    {"key": "insurance_cost_yearly", "label": "Insurance Cost (Yearly)", "type": "number", "section": "Visa", "order_index": 33},
    {"key": "whats_covered", "label": "What's Covered", "type": "text", "section": "Visa", "order_index": 34},
    {"key": "additional_insurance_options", "label": "Additional Insurance Options", "type": "text", "section": "Visa", "order_index": 35},
    {"key": "vaccination_requirements", "label": "Vaccination Requirements", "type": "text", "section": "Visa", "order_index": 36},
    {"key": "startup_support", "label": "Startup Support", "type": "text", "section": "Culture", "order_index": 37},
    {"key": "internships", "label": "Internships", "type": "text", "section": "Culture", "order_index": 38},
    {"key": "career_center_services", "label": "Career Center Services", "type": "text", "section": "Culture", "order_index": 39},
    {"key": "work_on_student_visa", "label": "Work on Student Visa", "type": "boolean", "section": "Visa", "order_index": 40},
    {"key": "post_grad_work_visa", "label": "Post-Grad Work Visa", "type": "text", "section": "Visa", "order_index": 41},
    {"key": "employment_rate_after_grad", "label": "Employment Rate After Grad", "type": "number", "section": "Culture", "order_index": 42},
    {"key": "student_visa_requirements", "label": "Student Visa Requirements", "type": "long-text", "section": "Visa", "order_index": 43},
    {"key": "visa_duration", "label": "Visa Duration", "type": "text", "section": "Visa", "order_index": 44},
    {"key": "working_limits", "label": "Working Limits", "type": "text", "section": "Visa", "order_index": 45},
    {"key": "taxes_on_income", "label": "Taxes on Income", "type": "text", "section": "Visa", "order_index": 46},
    {"key": "tax_treaties", "label": "Tax Treaties", "type": "text", "section": "Visa", "order_index": 47},
    {"key": "banking_for_intl_students", "label": "Banking for Int'l Students", "type": "text", "section": "Visa", "order_index": 48},
    {"key": "local_id_registration_needed", "label": "Local ID/Registration Needed", "type": "boolean", "section": "Visa", "order_index": 49},
    {"key": "university_culture", "label": "University Culture", "type": "long-text", "section": "Culture", "order_index": 50},
    {"key": "clubs_activities", "label": "Clubs & Activities", "type": "text", "section": "Culture", "order_index": 51},
    {"key": "notable_alumni", "label": "Notable Alumni", "type": "long-text", "section": "Culture", "order_index": 52},
]

UNIVERSITIES = [
    {"name": "MIT", "country": "US", "state": "Massachusetts", "city": "Cambridge", "type": "Private", "website": "https://www.mit.edu"},
    {"name": "Cambridge", "country": "BRIT", "state": None, "city": "Cambridge", "type": "Public", "website": "https://www.cam.ac.uk"},
    {"name": "Oxford", "country": "BRIT", "state": None, "city": "Oxford", "type": "Public", "website": "https://www.ox.ac.uk"},
    {"name": "Harvard", "country": "US", "state": "Massachusetts", "city": "Cambridge", "type": "Private", "website": "https://www.harvard.edu"},
    {"name": "Stanford", "country": "US", "state": "California", "city": "Stanford", "type": "Private", "website": "https://www.stanford.edu/"},
    {"name": "Imperial College London", "country": "BRIT", "state": None, "city": "London", "type": "Public", "website": "https://www.imperial.ac.uk"},
    {"name": "UCL", "country": "BRIT", "state": None, "city": "London", "type": "Public", "website": "https://www.ucl.ac.uk"},
    {"name": "Caltech", "country": "US", "state": "California", "city": "Pasadena", "type": "Private", "website": "https://www.caltech.edu"},
    {"name": "University of Chicago", "country": "US", "state": "Illinois", "city": "Chicago", "type": "Private", "website": "https://www.uchicago.edu"},
    {"name": "University of Pennsylvania", "country": "US", "state": "Pennsylvania", "city": "Philadelphia", "type": "Private", "website": "https://www.upenn.edu"},
    {"name": "Yale", "country": "US", "state": "Connecticut", "city": "New Haven", "type": "Private", "website": "https://www.yale.edu"},
    {"name": "Columbia", "country": "US", "state": "New York", "city": "New York City", "type": "Private", "website": "https://www.columbia.edu"},
    {"name": "Princeton", "country": "US", "state": "New Jersey", "city": "Princeton", "type": "Private", "website": "https://www.princeton.edu"},
    {"name": "Cornell", "country": "US", "state": "New York", "city": "Ithaca", "type": "Private", "website": "https://www.cornell.edu"},
    {"name": "University of Edinburgh", "country": "BRIT", "state": None, "city": "Edinburgh", "type": "Public", "website": "https://www.ed.ac.uk"},
    {"name": "Johns Hopkins", "country": "US", "state": "Maryland", "city": "Baltimore", "type": "Private", "website": "https://www.jhu.edu"},
    {"name": "UC Berkeley", "country": "US", "state": "California", "city": "Berkeley", "type": "Public", "website": "https://www.berkeley.edu"},
    {"name": "UCLA", "country": "US", "state": "California", "city": "Los Angeles", "type": "Public", "website": "https://www.ucla.edu"},
    {"name": "University of Michigan", "country": "US", "state": "Michigan", "city": "Ann Arbor", "type": "Public", "website": "https://www.umich.edu"},
    {"name": "Northwestern", "country": "US", "state": "Illinois", "city": "Evanston", "type": "Private", "website": "https://www.northwestern.edu"},
    {"name": "King's College", "country": "BRIT", "state": None, "city": "London", "type": "Public", "website": "https://www.kcl.ac.uk"},
    {"name": "LSE", "country": "BRIT", "state": None, "city": "London", "type": "Public", "website": "https://www.lse.ac.uk"},
    {"name": "Duke", "country": "US", "state": "North Carolina", "city": "Durham", "type": "Private", "website": "https://www.duke.edu"},
    {"name": "University of Washington", "country": "US", "state": "Washington", "city": "Seattle", "type": "Public", "website": "https://www.washington.edu"},
    {"name": "University of Manchester", "country": "BRIT", "state": None, "city": "Manchester", "type": "Public", "website": "https://www.manchester.ac.uk"},
    {"name": "Carnegie Mellon", "country": "US", "state": "Pennsylvania", "city": "Pittsburgh", "type": "Private", "website": "https://www.cmu.edu"},
    {"name": "University of Bristol", "country": "BRIT", "state": None, "city": "Bristol", "type": "Public", "website": "https://www.bristol.ac.uk"},
    {"name": "University of Warwick", "country": "BRIT", "state": None, "city": "Coventry", "type": "Public", "website": "https://warwick.ac.uk"},
    {"name": "Brown", "country": "US", "state": "Rhode Island", "city": "Providence", "type": "Private", "website": "https://www.brown.edu"},
    {"name": "NYU", "country": "US", "state": "New York", "city": "New York City", "type": "Private", "website": "https://www.nyu.edu"},
]

# General column key → University attribute it is filled from
BASIC_VALUE_SOURCES = {
    "uni_name": "name",
    "cntr": "country",
    "state": "state",
    "city": "city",
    "uni_type": "type",
    "web": "website",
}


def _ensure_view() -> View:
    view = View.query.filter_by(name=GENERAL_VIEW).first()
    if view is None:
        view = View(name=GENERAL_VIEW)
        db.session.add(view)
        db.session.flush()
        logger.info("Seed: created view %s id=%s", GENERAL_VIEW, view.id)
    return view


def _ensure_universities() -> list[University]:
    unis = []
    for data in UNIVERSITIES:
        uni = University.query.filter_by(name=data["name"]).first()
        if uni is None:
            uni = University(**data)
            db.session.add(uni)
            db.session.flush()
        unis.append(uni)
    return unis


def seed_database() -> dict:
    """Ensure the General view, universities, columns and basic values exist.

    Returns:
        Summary counts: {"view_id", "universities", "columns_created",
        "values_written"}.
    """
    view = _ensure_view()
    unis = _ensure_universities()

    existing_keys = {
        key for (key,) in db.session.query(SheetColumn.key).filter_by(view_id=view.id)
    }
    created = 0
    for definition in GENERAL_COLUMNS:
        if definition["key"] not in existing_keys:
            column_service.create_column(view.id, definition, commit=False)
            created += 1

    written = 0
    for index, uni in enumerate(unis, start=1):
        value_service.upsert_cell(uni.id, "nr", view.id, index, commit=False)
        written += 1
        for key, attr in BASIC_VALUE_SOURCES.items():
            value_service.upsert_cell(uni.id, key, view.id, getattr(uni, attr), commit=False)
            written += 1

    db.session.commit()
    logger.info(
        "Seed complete view=%s universities=%s columns_created=%s values=%s",
        view.id, len(unis), created, written,
    )
    return {
        "view_id": view.id,
        "universities": len(unis),
        "columns_created": created,
        "values_written": written,
    }
