# models/__init__.py
# Инициализация моделей

from .user import User
from .criteria_set import CriteriaSet
from .criterion import Criterion
from .assignment import Assignment
from .grade import Grade
from .feedback_comment import FeedbackComment
from .feedback_file import FeedbackFile
