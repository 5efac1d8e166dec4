# /smart-lms-backend/app/db/base.py

# This file acts as a central registry for all our SQLAlchemy models.
# By importing them all here, we ensure that the Base class knows about them
# before `Base.metadata.create_all` runs at startup.

from .base_class import Base

from .models.user_model import User
from .models.academic_models import Batch, Subject
from .models.meeting_models import Meeting
from .models.attendance_models import Attendance, AttendanceSession
from .models.emotion_models import StudentEmotion
