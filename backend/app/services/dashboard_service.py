"""
Tableau de bord enseignant : classes de l'enseignant connecté et leurs enfants.
Lecture seule.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.registration import Registration
from app.models.roster import PriorYearChild
from app.models.teacher import SectionTeacher
from app.models.vbs_class import ClassAllocation, ClassSection, VbsClass
from app.schemas.dashboard import DashboardClass, DashboardStudent, TeacherDashboard
from app.services.auth_service import TeacherNotFoundError, find_teacher_by_phone

logger = logging.getLogger(__name__)


def get_teacher_dashboard(db: Session, phone: str) -> TeacherDashboard:
    """
    Classes de l'enseignant = classes contenant au moins une section qui lui est affectée.
    Pour chaque classe : enfants alloués, avec allergies et notes médicales
    reprises du registre de l'an passé quand l'enfant y figure.
    """
    teacher = find_teacher_by_phone(db, phone)
    if teacher is None:
        raise TeacherNotFoundError("Enseignant introuvable.")

    classes = db.execute(
        select(VbsClass)
        .join(ClassSection, ClassSection.class_id == VbsClass.id)
        .join(SectionTeacher, SectionTeacher.section_id == ClassSection.id)
        .where(SectionTeacher.teacher_id == teacher.id)
        .distinct()
        .order_by(VbsClass.min_age, VbsClass.name)
    ).scalars().all()

    result = []
    for cls in classes:
        rows = db.execute(
            select(Registration, ClassSection.display_name, PriorYearChild)
            .join(ClassAllocation, ClassAllocation.child_id == Registration.id)
            .join(ClassSection, ClassSection.id == ClassAllocation.section_id)
            .outerjoin(PriorYearChild, PriorYearChild.id == Registration.returning_child_id)
            .where(ClassAllocation.class_id == cls.id)
            .order_by(Registration.first_name, Registration.last_name)
        ).all()

        students = [
            DashboardStudent(
                id=child.id,
                first_name=child.first_name,
                last_name=child.last_name,
                date_of_birth=child.date_of_birth,
                parent_name=child.parent_name,
                phone_number=child.phone_number,
                section_name=section_name,
                allergies=prior.allergies if prior else None,
                medical_notes=prior.medical_notes if prior else None,
            )
            for child, section_name, prior in rows
        ]
        result.append(DashboardClass(
            id=cls.id,
            name=cls.name,
            min_age=cls.min_age,
            max_age=cls.max_age,
            max_capacity=cls.max_capacity,
            enrolled=len(students),
            students=students,
        ))

    logger.info("Tableau de bord de %s : %d classe(s)", teacher.name, len(result))
    return TeacherDashboard(teacher_name=teacher.name, classes=result)
