from .user import UserLogin, UserOut
from .tokens import Token
from .task import TaskCreate, TaskOut
from .work_log import WorkLogParams, WorkLogSubmit, WorkLogUpdate, WorkLogOut, NotifyRequest, AuthorBasic
