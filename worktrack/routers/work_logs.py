# worktrack/routers/work_logs.py
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from worktrack.database import get_db
from worktrack.models import Task, TaskUser, User, ProjectPermission, WorkLog, WorkLogValidationError
from worktrack.schemas import WorkLogSubmit, WorkLogUpdate, WorkLogOut, NotifyRequest
from worktrack.services.time_parser import TimeParseError, TimeParser
from worktrack.utils.auth import get_current_user
from worktrack.utils.scopes import accessed_by, comments

logger = logging.getLogger(__name__)

router = APIRouter(tags=["work-logs"])


def _visible_task(db: Session, user: User, task_id: int) -> Task:
    watches_task = select(TaskUser.id).where(
        TaskUser.task_id == Task.id,
        TaskUser.user_id == user.id
    ).correlate(Task).exists()
    task = db.query(Task).join(
        ProjectPermission, ProjectPermission.project_id == Task.project_id
    ).filter(
        Task.id == task_id,
        Task.company_id == user.company_id,
        ProjectPermission.user_id == user.id,
        or_(ProjectPermission.can_see_unwatched.is_(True), watches_task)
    ).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _visible_work_log(db: Session, user: User, work_log_id: int) -> WorkLog:
    work_log = accessed_by(db.query(WorkLog), user).filter(WorkLog.id == work_log_id).first()
    if not work_log:
        raise HTTPException(status_code=404, detail="Work log not found")
    return work_log


def _own_work_log(db: Session, user: User, work_log_id: int) -> WorkLog:
    work_log = _visible_work_log(db, user, work_log_id)
    if work_log.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only the author can change a work log")
    return work_log


def _unprocessable(error: TimeParseError):
    return HTTPException(status_code=422, detail=[str(error)])


def _commit(db: Session):
    try:
        db.commit()
    except WorkLogValidationError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=e.errors)


@router.get("/work-logs/", response_model=List[WorkLogOut])
def list_work_logs(
    task_id: Optional[int] = None,
    comments_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Work logs the current user is allowed to see, newest first"""
    query = accessed_by(db.query(WorkLog), current_user)
    if task_id is not None:
        query = query.filter(WorkLog.task_id == task_id)
    if comments_only:
        query = comments(query)
    return query.order_by(WorkLog.started_at.desc(), WorkLog.id.desc()).offset(skip).limit(limit).all()


@router.get("/work-logs/{work_log_id}", response_model=WorkLogOut)
def get_work_log(
    work_log_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _visible_work_log(db, current_user, work_log_id)


@router.post("/tasks/{task_id}/work-logs", response_model=WorkLogOut, status_code=status.HTTP_201_CREATED)
def add_work_log(
    task_id: int,
    submission: WorkLogSubmit,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Log time and/or a comment against a task"""
    task = _visible_task(db, current_user, task_id)

    try:
        work_log = WorkLog.build_work_added_or_comment(task, current_user, submission.model_dump(exclude_none=True))
    except TimeParseError as e:
        raise _unprocessable(e)
    if work_log is False:
        raise HTTPException(status_code=400, detail="Nothing to log: provide a duration or a comment")

    db.add(work_log)
    if submission.work_log and submission.work_log.custom_attributes:
        work_log.assign_custom_attributes(submission.work_log.custom_attributes)
    _commit(db)
    db.refresh(work_log)
    logger.info(f"Work log {work_log.id} added to task {task.id} by user {current_user.id}")

    if submission.notify:
        work_log.notify(db, update_type="comment")
        db.refresh(work_log)
    return work_log


@router.put("/work-logs/{work_log_id}", response_model=WorkLogOut)
def update_work_log(
    work_log_id: int,
    work_log_update: WorkLogUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    work_log = _own_work_log(db, current_user, work_log_id)

    # Apply updates (only fields provided in request)
    update_data = work_log_update.model_dump(exclude_unset=True)
    try:
        # parse everything before touching the log, a bad value leaves it unchanged
        duration = TimeParser.parse_time(current_user, update_data["duration"]) if "duration" in update_data else None
        started_at = TimeParser.parse_date(current_user, update_data["started_at"]) if "started_at" in update_data else None
    except TimeParseError as e:
        raise _unprocessable(e)

    if duration is not None:
        work_log.duration = duration
    if started_at is not None:
        work_log.started_at = started_at
    if "body" in update_data:
        work_log.body = update_data["body"]
    if update_data.get("access_level_id") is not None:
        work_log.access_level_id = update_data["access_level_id"]
    if update_data.get("custom_attributes"):
        work_log.assign_custom_attributes(update_data["custom_attributes"])

    _commit(db)
    db.refresh(work_log)
    return work_log


@router.delete("/work-logs/{work_log_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_work_log(
    work_log_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    work_log = _own_work_log(db, current_user, work_log_id)
    db.delete(work_log)
    db.commit()
    logger.info(f"Work log {work_log_id} deleted by user {current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/work-logs/{work_log_id}/notify", response_model=WorkLogOut)
def notify_work_log(
    work_log_id: int,
    request: NotifyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    work_log = _visible_work_log(db, current_user, work_log_id)
    try:
        work_log.notify(db, update_type=request.update_type)
    except WorkLogValidationError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=e.errors)
    db.refresh(work_log)
    return work_log
