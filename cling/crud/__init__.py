from .user import user
from .one_time_code import one_time_code
