from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Table
from sqlalchemy.orm import relationship
from datetime import datetime
from worktrack.database import Base

# Association table for many-to-many relationship between tasks and customers
task_customers = Table(
    'task_customers',
    Base.metadata,
    Column('task_id', Integer, ForeignKey('tasks.id'), primary_key=True),
    Column('customer_id', Integer, ForeignKey('customers.id'), primary_key=True)
)

# Addresses without a user account that still receive task notifications
task_email_addresses = Table(
    'task_email_addresses',
    Base.metadata,
    Column('task_id', Integer, ForeignKey('tasks.id'), primary_key=True),
    Column('email_address_id', Integer, ForeignKey('email_addresses.id'), primary_key=True)
)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    worked_minutes = Column(Integer, default=0, nullable=False)

    # System dates
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    company = relationship("Company")
    project = relationship("Project", back_populates="tasks")
    task_users = relationship("TaskUser", back_populates="task", cascade="all, delete-orphan")
    users = relationship("User", secondary="task_users", viewonly=True, order_by="User.id")
    customers = relationship("Customer", secondary=task_customers, order_by="Customer.id")
    email_addresses = relationship("EmailAddress", secondary=task_email_addresses)
    work_logs = relationship("WorkLog", back_populates="task", order_by="WorkLog.started_at")

    @property
    def issue_name(self) -> str:
        return f"[#{self.id}] {self.name}"

    @property
    def owners(self):
        return [task_user.user for task_user in self.task_users if task_user.kind == TaskUser.OWNER]

    @property
    def watchers(self):
        return [task_user.user for task_user in self.task_users if task_user.kind == TaskUser.WATCHER]

    def add_user(self, user, kind=None):
        task_user = TaskUser(user=user, kind=kind or TaskUser.OWNER)
        self.task_users.append(task_user)
        return task_user

    def recalculate_worked_minutes(self, exclude=()):
        """Sum the durations of the task's work logs, skipping the ones in `exclude`"""
        excluded = set(id(log) for log in exclude)
        seconds = sum(log.duration or 0 for log in self.work_logs if id(log) not in excluded)
        self.worked_minutes = seconds // 60
        return self.worked_minutes

    def users_to_notify(self, user_who_made_change=None):
        recipients = [user for user in self.users if user.receive_notifications and user.is_active]
        if user_who_made_change is not None and not user_who_made_change.receive_own_notifications:
            recipients = [user for user in recipients if user.id != user_who_made_change.id]
        return recipients

    def mark_as_unread(self, except_user_ids=()):
        """Flag the task as unread for every task user not listed in except_user_ids"""
        skipped = set(except_user_ids)
        marked = []
        for task_user in self.task_users:
            if task_user.user_id not in skipped:
                task_user.unread = True
                marked.append(task_user.user_id)
        return marked

    def __repr__(self):
        return f"<Task(id={self.id}, name='{self.name}', worked_minutes={self.worked_minutes})>"


class TaskUser(Base):
    __tablename__ = "task_users"

    OWNER = "owner"
    WATCHER = "watcher"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    kind = Column(String, default=OWNER, nullable=False)
    unread = Column(Boolean, default=False, nullable=False)

    task = relationship("Task", back_populates="task_users")
    user = relationship("User")
