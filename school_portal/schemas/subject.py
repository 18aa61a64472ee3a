"""Subject schemas and the CBC subject catalog."""

from pydantic import Field

from school_portal.models.enums import SubjectCategory
from school_portal.schemas.common import BaseSchema


# ==========================================
# Constants
# ==========================================

GRADES = [
    "PP1", "PP2",
    "Grade 1", "Grade 2", "Grade 3", "Grade 4", "Grade 5", "Grade 6",
    "Grade 7", "Grade 8", "Grade 9",
]

LOWER_PRIMARY_GRADES = {"Grade 1", "Grade 2", "Grade 3"}
UPPER_PRIMARY_GRADES = {"Grade 4", "Grade 5", "Grade 6"}
JSS_GRADES = {"Grade 7", "Grade 8", "Grade 9"}


class Subject(BaseSchema):
    """A learning area taught in one grade."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    category: SubjectCategory = SubjectCategory.PRIMARY
    grade: str = ""
    teacher_name: str | None = None


def _template(category: SubjectCategory, *entries: tuple[str, str]) -> list[Subject]:
    return [Subject(id=subject_id, name=name, category=category) for subject_id, name in entries]


PRE_PRIMARY_SUBJECTS = _template(
    SubjectCategory.PRIMARY,
    ("lang_pp", "Language Activities"),
    ("math_pp", "Mathematical Activities"),
    ("env_pp", "Environmental Activities"),
    ("psy_pp", "Psychomotor Activities"),
    ("cre_pp", "Religious Education"),
)

LOWER_PRIMARY_SUBJECTS = _template(
    SubjectCategory.PRIMARY,
    ("lit_lp", "Literacy / Indigenous Lang"),
    ("kis_lp", "Kiswahili / KSL"),
    ("eng_lp", "English Language"),
    ("mat_lp", "Mathematics"),
    ("env_lp", "Environmental Activities"),
    ("hyg_lp", "Hygiene and Nutrition"),
    ("cre_lp", "Religious Education"),
    ("art_lp", "Creative Arts"),
    ("pe_lp", "Movement and Creative"),
)

UPPER_PRIMARY_SUBJECTS = _template(
    SubjectCategory.PRIMARY,
    ("eng_up", "English"),
    ("kis_up", "Kiswahili / KSL"),
    ("mat_up", "Mathematics"),
    ("sci_up", "Science and Technology"),
    ("soc_up", "Social Studies"),
    ("cre_up", "Religious Education"),
    ("art_up", "Creative Arts"),
    ("pe_up", "Physical Education"),
    ("agr_up", "Agriculture and Nutrition"),
)

JSS_SUBJECTS = _template(
    SubjectCategory.JSS,
    ("eng_j", "English"),
    ("kis_j", "Kiswahili / KSL"),
    ("mat_j", "Mathematics"),
    ("sci_j", "Integrated Science"),
    ("soc_j", "Social Studies"),
    ("pre_j", "Pre-Technical Studies"),
    ("bus_j", "Business Studies"),
    ("agr_j", "Agriculture and Nutrition"),
    ("pe_j", "Physical Education"),
    ("cre_j", "Religious Education"),
    ("com_j", "Computer Science"),
)


def is_jss_grade(grade: str) -> bool:
    """Whether a grade belongs to junior secondary (Grade 7-9)."""
    return grade in JSS_GRADES


def subjects_for_grade(grade: str) -> list[Subject]:
    """Default subject list for a grade, each stamped with that grade."""
    if grade.startswith("PP"):
        template = PRE_PRIMARY_SUBJECTS
    elif grade in LOWER_PRIMARY_GRADES:
        template = LOWER_PRIMARY_SUBJECTS
    elif grade in UPPER_PRIMARY_GRADES:
        template = UPPER_PRIMARY_SUBJECTS
    else:
        template = JSS_SUBJECTS
    return [subject.model_copy(update={"grade": grade}) for subject in template]
