# worktrack/models/work_log.py
# A work entry, belonging to a user & task.
# Has a duration in seconds for work entries.
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Enum, Table, event, or_, inspect
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship, object_session, Session
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from worktrack.database import Base
from worktrack.models.custom_attribute import CustomAttributeMethods
from worktrack.models.event_log import EventLog, LogType
from worktrack.models.user import AccessLevel, User
from worktrack.models.company import Customer
from worktrack.services import dispatch
from worktrack.services.mailer import notifications
from worktrack.services.time_parser import TimeParser

logger = logging.getLogger(__name__)

SENT_TRAILER = "Notification emails sent to"

# Users that were notified about a work log
work_log_notifications = Table(
    'work_log_notifications',
    Base.metadata,
    Column('work_log_id', Integer, ForeignKey('work_logs.id'), primary_key=True),
    Column('user_id', Integer, ForeignKey('users.id'), primary_key=True)
)


class WorkLogValidationError(ValueError):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class WorkLog(CustomAttributeMethods, Base):
    __tablename__ = "work_logs"

    # Attributes a submitted work_log params dict may set directly
    PERMITTED_PARAMS = ("body", "access_level_id", "paused_duration")

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    email_address_id = Column(Integer, ForeignKey("email_addresses.id"), nullable=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    access_level_id = Column(Integer, ForeignKey("access_levels.id"), default=AccessLevel.PUBLIC, nullable=False)

    started_at = Column(DateTime, nullable=True)
    duration = Column(Integer, default=0, nullable=False)  # seconds
    paused_duration = Column(Integer, default=0, nullable=False)  # seconds
    body = Column(Text, nullable=True)
    log_type = Column(Enum(LogType), nullable=True)
    comment = Column(Boolean, default=False, nullable=False)
    exported = Column(DateTime, nullable=True)
    approved = Column(Boolean, nullable=True)

    # Relationships
    author = relationship("User", foreign_keys=[user_id])
    email_address = relationship("EmailAddress")
    company = relationship("Company")
    project = relationship("Project")
    customer = relationship("Customer")
    task = relationship("Task", back_populates="work_logs")
    access_level = relationship("AccessLevel")

    ical_entry = relationship("IcalEntry", back_populates="work_log", uselist=False, cascade="all, delete-orphan")
    event_log = relationship(
        "EventLog",
        primaryjoin="and_(foreign(EventLog.target_id) == WorkLog.id, EventLog.target_type == 'WorkLog')",
        uselist=False,
        cascade="all, delete-orphan"
    )
    users = relationship("User", secondary=work_log_notifications)
    email_deliveries = relationship(
        "EmailDelivery", back_populates="work_log", cascade="all, delete-orphan", order_by="EmailDelivery.id"
    )
    custom_attribute_values = relationship(
        "CustomAttributeValue",
        primaryjoin="and_(foreign(CustomAttributeValue.attributable_id) == WorkLog.id, "
                    "CustomAttributeValue.attributable_type == 'WorkLog')",
        cascade="all, delete-orphan"
    )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create_task_created(cls, db: Session, task, user) -> "WorkLog":
        """
        Creates and saves a work log recording the creation of `task`.

        The log is flushed inside the caller's transaction; validation or
        database errors propagate.
        """
        work_log = cls()
        work_log.user = user
        work_log.for_task(task)
        work_log.log_type = LogType.TASK_CREATED
        work_log.body = task.description

        db.add(work_log)
        db.flush()
        return work_log

    @classmethod
    def build_work_added_or_comment(cls, task, user, params: Optional[dict] = None):
        """
        Builds a new (unsaved) work log for task from submitted params.

        params must look like {"work_log": {...}, "comment": ""}. Returns False
        when neither a duration nor a comment was given.
        """
        params = params or {}
        work_log_params = dict(params.get("work_log") or {})
        comment = params.get("comment")
        duration = work_log_params.get("duration")

        if _blank(duration) and _blank(comment):
            return False

        attributes = {key: work_log_params[key] for key in cls.PERMITTED_PARAMS if key in work_log_params}

        if not _blank(comment):
            attributes["body"] = comment
            attributes["log_type"] = LogType.TASK_COMMENT
            attributes["comment"] = True

        if not _blank(duration):
            attributes["duration"] = TimeParser.parse_time(user, str(duration))
            attributes["started_at"] = TimeParser.date_from_params(user, work_log_params, "started_at")
            attributes["log_type"] = LogType.TASK_WORK_ADDED
        else:
            attributes["duration"] = 0
            attributes["started_at"] = datetime.utcnow()

        work_log = cls(**attributes)
        work_log.user = user
        work_log.company = task.company
        work_log.project = task.project
        work_log.customer = task.customers[0] if task.customers else task.project.customer
        work_log.task = task
        return work_log

    def for_task(self, task):
        self.task = task
        self.project = task.project
        self.company = task.project.company
        self.customer = task.project.customer
        self.started_at = datetime.utcnow()
        self.duration = 0

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    @property
    def user(self) -> User:
        """The author, or a placeholder built from the email address for mailed-in logs"""
        if self.author is None:
            email = self.email_address.email if self.email_address is not None else "unknown"
            return User(name=f"Unknown User ({email})", email=email, company_id=self.company_id)
        return self.author

    @user.setter
    def user(self, user):
        self.author = user

    @property
    def ended_at(self) -> datetime:
        return self.started_at + timedelta(seconds=(self.duration or 0) + (self.paused_duration or 0))

    @property
    def customer_name(self) -> Optional[str]:
        if self.customer is not None:
            return self.customer.name
        return None

    @customer_name.setter
    def customer_name(self, name):
        session = object_session(self)
        if session is None:
            raise ValueError("customer_name can only be set on a work log attached to a session")
        company_id = self.company_id if self.company_id is not None else getattr(self.company, "id", None)
        self.customer = session.query(Customer).filter(
            Customer.company_id == company_id,
            Customer.name == name
        ).first()

    @hybrid_property
    def sends_mail(self) -> bool:
        """Comments and task creation logs are mailed; plain work entries are not"""
        return bool(self.comment) or self.log_type in (LogType.TASK_COMMENT, LogType.TASK_CREATED)

    @sends_mail.expression
    def sends_mail(cls):
        return or_(cls.comment.is_(True), cls.log_type.in_([LogType.TASK_COMMENT, LogType.TASK_CREATED]))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, custom_attributes: bool = True) -> List[str]:
        errors = []
        if self.started_at is None:
            errors.append("Started at can't be blank")
        if custom_attributes and self.log_type == LogType.TASK_WORK_ADDED:
            errors.extend(self.custom_attribute_errors())
        return errors

    def is_valid(self) -> bool:
        return not self.validate()

    def _timing_changed(self) -> bool:
        attrs = inspect(self).attrs
        return any(attrs[name].history.has_changes() for name in ("duration", "started_at", "log_type"))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def notify(self, db: Optional[Session] = None, update_type: str = "comment", files=None):
        """
        Queue one email delivery per recipient and hand them to the mailer.

        Commits the session: the queued deliveries must be visible to the
        background sender.
        """
        db = db or object_session(self)
        files = files or []
        threshold = self.access_level_id or AccessLevel.PUBLIC

        self._mark_as_unread()

        users = [
            user for user in self.task.users_to_notify(self.user)
            if user.access_level_id >= threshold
        ]
        addresses = list(self.task.email_addresses) + [user.default_email_address for user in users]

        recipients = []
        seen = set()
        for address in addresses:
            if address is None or address.email.lower() in seen:
                continue
            seen.add(address.email.lower())
            recipients.append(address)

        self.users = users
        for address in recipients:
            db.add(EmailDelivery(status=EmailDelivery.QUEUED, email_address=address, work_log=self))
        db.commit()

        logger.info(f"Work log {self.id}: queued {len(recipients)} notification(s)")
        dispatch.send_notifications(self, db, update_type, files)

    def send_notifications(self, db: Session, update_type: str = "comment", files=None):
        """Only logs carrying a comment, or task creation logs, send mail"""
        files = files or []
        author = self.user

        if not self.sends_mail:
            logger.debug(f"Work log {self.id} has no comment, nothing to send")
        elif (self.comment and self.log_type != LogType.TASK_CREATED) or self.log_type == LogType.TASK_COMMENT:
            email_body = f"{author.name}:\n{self.body or ''}"

            def send(recipient):
                message = notifications.changed(update_type, self.task, author, recipient, email_body, files)
                notifications.deliver(message)

            self._setup_notifications(db, send)
        else:
            def send(recipient):
                # sent without the body, a comment added with the task gets its own mail
                message = notifications.created(self.task, author, recipient, files)
                notifications.deliver(message)

            self._setup_notifications(db, send)

    def _setup_notifications(self, db: Session, send):
        queued = db.query(EmailDelivery).filter(
            EmailDelivery.work_log_id == self.id,
            EmailDelivery.status == EmailDelivery.QUEUED
        ).order_by(EmailDelivery.id).all()

        for delivery in queued:
            send(delivery.email_address.email)
            delivery.status = EmailDelivery.SENT
            delivery.sent_at = datetime.utcnow()
            db.commit()

            self._append_delivered_email_address_to_body(delivery)
            db.commit()
            logger.info(f"Work log {self.id}: notification sent to {delivery.email_address.email}")

    def _mark_as_unread(self):
        threshold = self.access_level_id or AccessLevel.PUBLIC
        hidden_from = [user.id for user in self.task.users if user.access_level_id < threshold]
        hidden_from.append(self.user_id)
        return self.task.mark_as_unread(hidden_from)

    def _append_delivered_email_address_to_body(self, delivery):
        body = self.body if not _blank(self.body) else ""
        recipient = delivery.email_address.username_and_email
        if SENT_TRAILER not in body:
            if body:
                body += "\n\n"
            body += f"{SENT_TRAILER} {recipient}"
        else:
            body += f", {recipient}"
        self.body = body

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _after_create(self, session: Session):
        self.event_log = EventLog(
            company_id=self.company_id if self.company_id is not None else getattr(self.company, "id", None),
            project_id=self.project_id if self.project_id is not None else getattr(self.project, "id", None),
            user_id=self.user_id if self.user_id is not None else getattr(self.author, "id", None),
            event_type=self.log_type,
            target_type="WorkLog",
            created_at=self.started_at
        )
        self._recalculate_task_if_worked()

    def _after_update(self, session: Session):
        if self.ical_entry is not None:
            session.delete(self.ical_entry)
        if self.event_log is not None:
            self.event_log.created_at = self.started_at
        self._recalculate_task_if_worked()

    def _after_destroy(self, session: Session, destroyed):
        if self.task is not None:
            self.task.recalculate_worked_minutes(exclude=destroyed)

    def _recalculate_task_if_worked(self):
        if self.task is not None and (self.duration or 0) > 0:
            self.task.recalculate_worked_minutes()

    def __repr__(self):
        return f"<WorkLog(id={self.id}, task_id={self.task_id}, log_type='{self.log_type}', duration={self.duration})>"


class EmailDelivery(Base):
    __tablename__ = "email_deliveries"

    QUEUED = "queued"
    SENT = "sent"

    id = Column(Integer, primary_key=True, index=True)
    work_log_id = Column(Integer, ForeignKey("work_logs.id"), nullable=False, index=True)
    email_address_id = Column(Integer, ForeignKey("email_addresses.id"), nullable=False)
    status = Column(String(20), default=QUEUED, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    sent_at = Column(DateTime, nullable=True)

    work_log = relationship("WorkLog", back_populates="email_deliveries")
    email_address = relationship("EmailAddress")

    def __repr__(self):
        return f"<EmailDelivery(id={self.id}, work_log_id={self.work_log_id}, status='{self.status}')>"


@event.listens_for(Session, "before_flush")
def run_work_log_callbacks(session, flush_context, instances):
    """Validation plus after create/update/destroy behaviour for work logs"""
    created = [obj for obj in session.new if isinstance(obj, WorkLog)]
    updated = [
        obj for obj in session.dirty
        if isinstance(obj, WorkLog) and session.is_modified(obj, include_collections=False)
    ]
    destroyed = [obj for obj in session.deleted if isinstance(obj, WorkLog)]

    for work_log in created + updated:
        # body-only writes such as the sent trailer skip the custom attribute rules
        errors = work_log.validate(custom_attributes=work_log in created or work_log._timing_changed())
        if errors:
            raise WorkLogValidationError(errors)

    for work_log in created:
        work_log._after_create(session)
    for work_log in updated:
        work_log._after_update(session)
    for work_log in destroyed:
        work_log._after_destroy(session, destroyed)
