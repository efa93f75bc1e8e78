from app import create_app
from extensions import db
from models import User, Assignment, Grade, CriteriaSet, Criterion, FeedbackComment, FeedbackFile

# Создаем экземпляр приложения, чтобы получить контекст
app = create_app()

with app.app_context():
    db.create_all()

    # --- 1. ОЧИСТКА ДАННЫХ ---
    print("Очистка старых данных...")
    # Идем в обратном порядке зависимостей
    db.session.query(FeedbackFile).delete()
    db.session.query(FeedbackComment).delete()
    db.session.query(Grade).delete()
    db.session.query(Assignment).delete()
    db.session.query(Criterion).delete()
    db.session.query(CriteriaSet).delete()
    db.session.query(User).delete()
    db.session.commit()
    print("Очистка завершена.")

    # --- 2. СОЗДАНИЕ ДАННЫХ ---
    print("Добавление тестовых данных...")

    try:
        admin = User(code='000001', nickname='Admin', role='admin')
        teacher = User(code='200001', nickname='Teacher', role='teacher')
        student_1 = User(code='100001', nickname='Student 1', role='student')
        student_2 = User(code='100002', nickname='Student 2', role='student')
        db.session.add_all([admin, teacher, student_1, student_2])
        db.session.commit()

        # Сохраненный общий набор критериев
        essay_set = CriteriaSet(name='Essay', name_lowercase='essay', owner_id=teacher.id, shared=True)
        essay_set.criteria = [
            Criterion(position=0, name='Argument', description='Clarity and strength of the thesis'),
            Criterion(position=1, name='Evidence', description='Use of sources'),
            Criterion(position=2, name='Style', description=''),
        ]
        db.session.add(essay_set)
        db.session.commit()

        # Задание с собственным набором (копия сохраненного)
        private_set = CriteriaSet(name='', name_lowercase=None, owner_id=teacher.id, shared=False)
        private_set.criteria = [
            Criterion(position=c.position, name=c.name, description=c.description) for c in essay_set.criteria
        ]
        db.session.add(private_set)
        db.session.commit()

        assignment = Assignment(name='Essay 1', course='Writing 101', criteria_set_id=private_set.id)
        db.session.add(assignment)
        db.session.commit()

        grade = Grade(assignment_id=assignment.id, student_id=student_1.id, grader_id=teacher.id, grade=72)
        db.session.add(grade)
        db.session.commit()

        # Пример комментария
        comment = FeedbackComment(assignment_id=assignment.id, grade_id=grade.id,
                                  criterion_id=private_set.criteria[0].id,
                                  comment_text='<p>Clear thesis.</p>', comment_format=1)
        db.session.add(comment)
        db.session.commit()

        print("Тестовые данные успешно добавлены!")
    except Exception as e:
        db.session.rollback()
        print(f"Ошибка при добавлении данных: {e}")
