from task_tracker.permissions import can_delete, can_read, can_toggle_complete, can_update_fields

TASK = {"id": 1, "creator_id": 1, "assignee_id": 2}
SELF_ASSIGNED = {"id": 2, "creator_id": 5, "assignee_id": 5}


def test_delete_allowed_for_creator_and_assignee():
    assert can_delete(TASK, 1) is True
    assert can_delete(TASK, 2) is True
    assert can_delete(TASK, 3) is False


def test_creator_cannot_update_after_assignment():
    assert can_update_fields(TASK, 1) is False
    assert can_update_fields(TASK, 2) is True


def test_only_assignee_reads_and_toggles():
    for check in (can_read, can_toggle_complete):
        assert check(TASK, 2) is True
        assert check(TASK, 1) is False
        assert check(TASK, 3) is False


def test_self_assigned_task_grants_everything():
    for check in (can_read, can_update_fields, can_toggle_complete, can_delete):
        assert check(SELF_ASSIGNED, 5) is True
        assert check(SELF_ASSIGNED, 6) is False
