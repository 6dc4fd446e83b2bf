# worktrack/routers/tasks.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from worktrack.database import get_db
from worktrack.models import Task, TaskUser, User, Customer, Project, ProjectPermission, WorkLog, WorkLogValidationError
from worktrack.schemas import TaskCreate, TaskOut
from worktrack.utils.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _company_users(db: Session, company_id: int, user_ids):
    if not user_ids:
        return []
    users = db.query(User).filter(User.id.in_(user_ids), User.company_id == company_id).all()
    if len(users) != len(set(user_ids)):
        raise HTTPException(status_code=400, detail="Unknown user in task assignment")
    return users


@router.post("/", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a task, log its creation and notify the people on it"""
    project = db.query(Project).join(
        ProjectPermission, ProjectPermission.project_id == Project.id
    ).filter(
        Project.id == task_in.project_id,
        Project.company_id == current_user.company_id,
        ProjectPermission.user_id == current_user.id
    ).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    task = Task(
        company_id=project.company_id,
        project=project,
        name=task_in.name,
        description=task_in.description,
    )
    for owner in _company_users(db, project.company_id, task_in.owner_ids):
        task.add_user(owner, TaskUser.OWNER)
    for watcher in _company_users(db, project.company_id, task_in.watcher_ids):
        task.add_user(watcher, TaskUser.WATCHER)
    if task_in.customer_ids:
        task.customers = db.query(Customer).filter(
            Customer.id.in_(task_in.customer_ids),
            Customer.company_id == project.company_id
        ).all()

    db.add(task)
    try:
        db.flush()
        work_log = WorkLog.create_task_created(db, task, current_user)
        db.commit()
    except WorkLogValidationError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=e.errors)

    db.refresh(task)
    logger.info(f"Task {task.id} created by user {current_user.id}")

    if task_in.notify:
        work_log.notify(db, update_type="created")
        db.refresh(task)

    return task
