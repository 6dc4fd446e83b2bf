from datetime import datetime

import pytest

from worktrack.models import CustomAttribute, EventLog, IcalEntry, LogType, WorkLog, WorkLogValidationError


def _log_work(db, world, duration="1h", **extra):
    params = {"work_log": {"duration": duration, "started_at": "01/02/2024 09:30"}}
    params.update(extra)
    work_log = WorkLog.build_work_added_or_comment(world.task, world.ann, params)
    db.add(work_log)
    db.commit()
    return work_log


def _event_log_for(db, work_log):
    return db.query(EventLog).filter(
        EventLog.target_type == "WorkLog",
        EventLog.target_id == work_log.id
    ).one_or_none()


class TestCreate:
    def test_worked_time_recalculates_the_task_once(self, db, world, recalculations):
        _log_work(db, world, "1h 30m")

        assert recalculations == [world.task.id]
        assert world.task.worked_minutes == 90

    def test_comment_does_not_recalculate(self, db, world, recalculations):
        work_log = WorkLog.build_work_added_or_comment(world.task, world.ann, {"comment": "On it"})
        db.add(work_log)
        db.commit()

        assert recalculations == []
        assert world.task.worked_minutes == 0

    def test_event_log_is_written(self, db, world):
        work_log = _log_work(db, world)
        event_log = _event_log_for(db, work_log)

        assert event_log.event_type == LogType.TASK_WORK_ADDED
        assert event_log.created_at == datetime(2024, 2, 1, 9, 30)
        assert event_log.company_id == world.company.id
        assert event_log.user_id == world.ann.id

    def test_several_logs_add_up(self, db, world):
        _log_work(db, world, "1h")
        _log_work(db, world, "45m")

        assert world.task.worked_minutes == 105


class TestUpdate:
    def test_changed_duration_recalculates_once(self, db, world, recalculations):
        work_log = _log_work(db, world, "1h")
        del recalculations[:]

        work_log.duration = 7200
        db.commit()

        assert recalculations == [world.task.id]
        assert world.task.worked_minutes == 120

    def test_started_at_change_moves_the_event_log(self, db, world):
        work_log = _log_work(db, world)

        work_log.started_at = datetime(2024, 3, 1, 8, 0)
        db.commit()

        assert _event_log_for(db, work_log).created_at == datetime(2024, 3, 1, 8, 0)

    def test_calendar_entry_is_dropped(self, db, world):
        work_log = _log_work(db, world)
        db.add(IcalEntry(work_log_id=work_log.id, body="BEGIN:VEVENT"))
        db.commit()

        work_log.body = "Changed"
        db.commit()

        assert db.query(IcalEntry).count() == 0

    def test_comment_edit_does_not_recalculate(self, db, world, recalculations):
        work_log = WorkLog.build_work_added_or_comment(world.task, world.ann, {"comment": "First draft"})
        db.add(work_log)
        db.commit()

        work_log.body = "Second draft"
        db.commit()

        assert recalculations == []
        assert world.task.worked_minutes == 0

    def test_collection_only_change_is_not_an_update(self, db, world, recalculations):
        work_log = _log_work(db, world)
        del recalculations[:]

        work_log.users.append(world.cara)
        db.commit()

        assert recalculations == []


class TestDestroy:
    def test_destroy_recalculates_without_the_log(self, db, world, recalculations):
        keep = _log_work(db, world, "1h")
        gone = _log_work(db, world, "2h")
        assert world.task.worked_minutes == 180
        del recalculations[:]

        db.delete(gone)
        db.commit()

        assert recalculations == [world.task.id]
        assert world.task.worked_minutes == 60
        assert _event_log_for(db, keep) is not None
        assert db.query(EventLog).count() == 1


class TestValidation:
    def test_started_at_is_required(self, db, world):
        work_log = WorkLog.build_work_added_or_comment(world.task, world.ann, {"comment": "hi"})
        work_log.started_at = None
        db.add(work_log)

        with pytest.raises(WorkLogValidationError) as exc_info:
            db.commit()
        db.rollback()

        assert exc_info.value.errors == ["Started at can't be blank"]
        assert db.query(WorkLog).count() == 0

    def test_mandatory_custom_attribute_on_work_added(self, db, world):
        ticket = CustomAttribute(
            company_id=world.company.id, attributable_type="WorkLog", display_name="Ticket", mandatory=True
        )
        db.add(ticket)
        db.commit()

        with pytest.raises(WorkLogValidationError) as exc_info:
            _log_work(db, world)
        db.rollback()
        assert exc_info.value.errors == ["Ticket is required"]

        work_log = WorkLog.build_work_added_or_comment(world.task, world.ann, {"work_log": {"duration": "1h"}})
        work_log.set_custom_attribute_value(ticket, "T-42")
        db.add(work_log)
        db.commit()

        assert work_log.custom_attribute_values[0].attributable_id == work_log.id
        assert work_log.custom_attribute_errors() == []

    def test_timing_changes_recheck_custom_attributes(self, db, world):
        work_log = _log_work(db, world)
        ticket = CustomAttribute(
            company_id=world.company.id, attributable_type="WorkLog", display_name="Ticket", mandatory=True
        )
        db.add(ticket)
        db.commit()

        work_log.body = "Only the text changed"
        db.commit()

        work_log.duration = 7200
        with pytest.raises(WorkLogValidationError) as exc_info:
            db.commit()
        db.rollback()
        assert exc_info.value.errors == ["Ticket is required"]

        work_log.set_custom_attribute_value(ticket, "T-7")
        work_log.duration = 7200
        db.commit()
        assert world.task.worked_minutes == 120

    def test_comments_skip_custom_attributes(self, db, world):
        db.add(CustomAttribute(
            company_id=world.company.id, attributable_type="WorkLog", display_name="Ticket", mandatory=True
        ))
        db.commit()

        work_log = WorkLog.build_work_added_or_comment(world.task, world.ann, {"comment": "hi"})
        db.add(work_log)
        db.commit()

        assert work_log.id is not None


def test_custom_attribute_errors_for():
    attribute = CustomAttribute(display_name="Phase", max_length=6, choices="design, build")

    assert attribute.errors_for(None) == []
    assert attribute.errors_for("build") == []
    assert attribute.errors_for("testing") == [
        "Phase is too long (maximum is 6 characters)",
        "Phase must be one of: design, build",
    ]
