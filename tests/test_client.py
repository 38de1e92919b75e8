import io

import pytest

from client import ApiError, AttendanceClient, Roster, main
from schemas import AttendanceStatus


@pytest.fixture
def api(client):
    return AttendanceClient(http=client)


def test_client_crud(api):
    created = api.add_student("A1", "Asha", remarks="new")
    assert created.status is AttendanceStatus.absent

    updated = api.update_student(created.id, status="present")
    assert updated.status is AttendanceStatus.present

    assert [s.id for s in api.list_students()] == [created.id]
    assert api.delete_student(created.id)["deleted"] is True
    assert api.list_students() == []


def test_client_raises_api_error_with_server_message(api):
    with pytest.raises(ApiError) as exc_info:
        api.update_student("64b7f0c2a1b2c3d4e5f60718", status="present")
    assert exc_info.value.status_code == 404
    assert "not found" in exc_info.value.message

    with pytest.raises(ApiError) as exc_info:
        api.update_student("64b7f0c2a1b2c3d4e5f60718", status="late")
    assert exc_info.value.status_code == 400


def test_roster_toggle_reconciles_with_server(api):
    asha = api.add_student("A1", "Asha")
    ravi = api.add_student("A2", "Ravi")
    roster = Roster(api)
    roster.refresh()

    updated = roster.toggle(asha.id)

    assert updated.status is AttendanceStatus.present
    assert roster.find(asha.id) == updated
    assert roster.find(ravi.id).status is AttendanceStatus.absent
    assert roster.counts() == {"present": 1, "absent": 1}

    roster.toggle(asha.id)
    assert api.list_students()[0].status is AttendanceStatus.absent


def test_roster_toggle_unknown_id(api):
    roster = Roster(api)
    with pytest.raises(KeyError):
        roster.toggle("64b7f0c2a1b2c3d4e5f60718")


def test_roster_render(api):
    api.add_student("A1", "Asha", status="present", remarks="on time")
    roster = Roster(api)
    roster.refresh()

    lines = roster.render().splitlines()

    assert lines[0].split() == ["ID", "ROLL", "NAME", "STATUS", "REMARKS"]
    assert "A1" in lines[1] and "present" in lines[1] and "on time" in lines[1]
    assert lines[-1] == "1 students, 1 present, 0 absent"


def test_cli_add_toggle_remove(api):
    out = io.StringIO()
    assert main(["add", "A1", "Asha"], client=api, out=out) == 0
    assert "absent" in out.getvalue()

    student_id = api.list_students()[0].id
    out = io.StringIO()
    assert main(["toggle", student_id], client=api, out=out) == 0
    assert "1 present" in out.getvalue()

    out = io.StringIO()
    assert main(["remove", student_id], client=api, out=out) == 0
    assert out.getvalue().splitlines()[-1] == "0 students, 0 present, 0 absent"


def test_cli_reports_errors(api):
    assert main(["toggle", "64b7f0c2a1b2c3d4e5f60718"], client=api, out=io.StringIO()) == 1


def test_cli_closes_the_client_it_opens(api, monkeypatch):
    import client as client_module

    closed = []
    monkeypatch.setattr(api, "close", lambda: closed.append(True))
    monkeypatch.setattr(client_module, "AttendanceClient", lambda base_url: api)

    assert main(["list"], out=io.StringIO()) == 0
    assert closed == [True]


def test_cli_leaves_injected_client_open(api, monkeypatch):
    closed = []
    monkeypatch.setattr(api, "close", lambda: closed.append(True))

    assert main(["list"], client=api, out=io.StringIO()) == 0
    assert closed == []
