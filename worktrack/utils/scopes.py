# worktrack/utils/scopes.py
"""
Composable filters deciding which work logs a user may see.

Each function takes a Query over WorkLog and returns a narrowed Query, so
they can be chained: accessed_by(comments(db.query(WorkLog)), user).
"""

from sqlalchemy import or_, select
from sqlalchemy.orm import Query, joinedload

from worktrack.models import WorkLog, LogType, Project, ProjectPermission, TaskUser, User


def comments(query: Query) -> Query:
    return query.filter(or_(WorkLog.comment.is_(True), WorkLog.log_type == LogType.TASK_COMMENT))


def on_tasks_owned_by(query: Query, user: User) -> Query:
    return query.join(TaskUser, TaskUser.task_id == WorkLog.task_id).filter(TaskUser.user_id == user.id)


def level_accessed_by(query: Query, user: User) -> Query:
    return query.filter(WorkLog.access_level_id <= user.access_level_id)


def _permitted(query: Query, user: User) -> Query:
    """Logs on projects where the user may see unwatched tasks or watches the log's task"""
    watches_task = select(TaskUser.id).where(
        TaskUser.task_id == WorkLog.task_id,
        TaskUser.user_id == user.id
    ).correlate(WorkLog).exists()
    return query.join(
        ProjectPermission, ProjectPermission.project_id == WorkLog.project_id
    ).filter(
        ProjectPermission.user_id == user.id,
        or_(ProjectPermission.can_see_unwatched.is_(True), watches_task)
    ).options(joinedload(WorkLog.task))


def accessed_by(query: Query, user: User) -> Query:
    """Check all access rights for user"""
    query = query.join(Project, WorkLog.project_id == Project.id).filter(
        Project.completed_at.is_(None),
        WorkLog.company_id == user.company_id
    )
    return level_accessed_by(_permitted(query, user), user)


def all_accessed_by(query: Query, user: User) -> Query:
    """Like accessed_by, across companies and completed projects"""
    return level_accessed_by(_permitted(query, user), user)
