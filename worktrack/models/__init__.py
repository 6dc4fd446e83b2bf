from .company import Company, Customer
from .user import AccessLevel, User, EmailAddress
from .project import Project, ProjectPermission
from .task import Task, TaskUser, task_customers, task_email_addresses
from .event_log import EventLog, LogType
from .ical_entry import IcalEntry
from .custom_attribute import CustomAttribute, CustomAttributeValue
from .work_log import WorkLog, EmailDelivery, WorkLogValidationError, work_log_notifications
