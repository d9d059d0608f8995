# talenthr/models/__init__.py
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models
from .company import Company
from .user import User, ROLES, INVITABLE_ROLES, ADMIN_ROLES
from .department import Department
from .employee import Employee
from .invitation import Invitation
from .otp import OTP, OTP_PURPOSES
from .attendance import Attendance
from .performance import Goal, PerformanceReview
from .recruiting import JobPosting, Candidate, Interview
from talenthr.leave.models import LeaveType, LeaveBalance, LeaveRequest
