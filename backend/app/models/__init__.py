# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme families.created_by_teacher_id → teachers.id échouent
# avec NoReferencedTableError si teacher.py n'est pas chargé avant family.py.

from app.models.teacher import Teacher, TeacherAssignment  # noqa: F401  (doit précéder family)
from app.models.school_class import SchoolClass, Course, ClassCourse  # noqa: F401
from app.models.family import Family, Student, FamilyLink, NotificationPreference  # noqa: F401
from app.models.weekly_task import WeeklyTask, TaskItem, TaskNotification  # noqa: F401
from app.models.submission import Submission  # noqa: F401
from app.models.admin_config import AdminConfig  # noqa: F401
from app.models.curriculum_tag import CurriculumTag, TaskItemTag  # noqa: F401  (après weekly_task)
