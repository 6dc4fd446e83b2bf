from datetime import datetime

import pytest

from conftest import make_user
from worktrack.models import AccessLevel, Company, ProjectPermission, TaskUser, WorkLog
from worktrack.utils.scopes import accessed_by, all_accessed_by, comments, level_accessed_by, on_tasks_owned_by


@pytest.fixture
def logs(db, world):
    def add(user, access_level_id, **params):
        params.setdefault("work_log", {})["access_level_id"] = access_level_id
        work_log = WorkLog.build_work_added_or_comment(world.task, user, params)
        db.add(work_log)
        return work_log

    public_comment = add(world.ann, AccessLevel.PUBLIC, comment="public")
    private_comment = add(world.ann, AccessLevel.PRIVATE, comment="private")
    public_work = add(world.bob, AccessLevel.PUBLIC, work_log={"duration": "1h"})
    db.commit()
    return {"public_comment": public_comment, "private_comment": private_comment, "public_work": public_work}


def _ids(query):
    return sorted(work_log.id for work_log in query.all())


def _expected(logs, *names):
    return sorted(logs[name].id for name in names)


def test_comments(db, logs):
    assert _ids(comments(db.query(WorkLog))) == _expected(logs, "public_comment", "private_comment")


def test_work_with_a_comment_counts_as_a_comment(db, world, logs):
    params = {"work_log": {"duration": "1h"}, "comment": "done"}
    work_log = WorkLog.build_work_added_or_comment(world.task, world.ann, params)
    db.add(work_log)
    db.commit()

    assert work_log.id in _ids(comments(db.query(WorkLog)))


def test_level_accessed_by(db, world, logs):
    assert _ids(level_accessed_by(db.query(WorkLog), world.bob)) == _expected(logs, "public_comment", "public_work")
    assert _ids(level_accessed_by(db.query(WorkLog), world.cara)) == _expected(
        logs, "public_comment", "private_comment", "public_work"
    )


def test_on_tasks_owned_by(db, world, logs):
    outsider = make_user(db, world.company, "Olga Outsider", "olga@example.com")
    db.commit()

    assert _ids(on_tasks_owned_by(db.query(WorkLog), world.cara)) == _expected(
        logs, "public_comment", "private_comment", "public_work"
    )
    assert _ids(on_tasks_owned_by(db.query(WorkLog), outsider)) == []


def test_accessed_by_respects_level(db, world, logs):
    assert _ids(accessed_by(db.query(WorkLog), world.bob)) == _expected(logs, "public_comment", "public_work")


def test_accessed_by_chains_with_comments(db, world, logs):
    assert _ids(accessed_by(comments(db.query(WorkLog)), world.bob)) == _expected(logs, "public_comment")


def test_unwatched_tasks_need_the_project_flag(db, world, logs):
    dave = make_user(db, world.company, "Dave Viewer", "dave@example.com", AccessLevel.PRIVATE)
    world.project.permissions.append(ProjectPermission(user=dave, can_see_unwatched=False))
    db.commit()

    assert _ids(accessed_by(db.query(WorkLog), dave)) == []

    world.task.add_user(dave, TaskUser.WATCHER)
    db.commit()

    assert _ids(accessed_by(db.query(WorkLog), dave)) == _expected(
        logs, "public_comment", "private_comment", "public_work"
    )


def test_no_project_permission_sees_nothing(db, world, logs):
    eve = make_user(db, world.company, "Eve Elsewhere", "eve@example.com", AccessLevel.PRIVATE)
    db.commit()

    assert _ids(accessed_by(db.query(WorkLog), eve)) == []
    assert _ids(all_accessed_by(db.query(WorkLog), eve)) == []


def test_completed_projects_only_in_all_accessed_by(db, world, logs):
    world.project.completed_at = datetime.utcnow()
    db.commit()

    assert _ids(accessed_by(db.query(WorkLog), world.cara)) == []
    assert _ids(all_accessed_by(db.query(WorkLog), world.cara)) == _expected(
        logs, "public_comment", "private_comment", "public_work"
    )


def test_other_company_users_only_in_all_accessed_by(db, world, logs):
    other = Company(name="Umbrella")
    frank = make_user(db, other, "Frank Partner", "frank@example.com", AccessLevel.PUBLIC)
    world.project.permissions.append(ProjectPermission(user=frank, can_see_unwatched=True))
    db.add(other)
    db.commit()

    assert _ids(accessed_by(db.query(WorkLog), frank)) == []
    assert _ids(all_accessed_by(db.query(WorkLog), frank)) == _expected(logs, "public_comment", "public_work")
