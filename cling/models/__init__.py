from .user import User
from .one_time_code import OneTimeCode
from .reminder import Reminder, REMINDER_STATUSES
