"""
Attendance client

Talks to the attendance API over HTTP, keeps a local copy of the roster and
renders it as a text table. The server response always wins: after a toggle
the local row is replaced by the record the API returned.
"""
import argparse
import logging
import sys

import httpx

from schemas import AttendanceStatus, StudentRecord
from settings import configure_logging, get_settings

logger = logging.getLogger(__name__)

ATTENDANCE_PATH = "/api/attendance"


class ApiError(Exception):
    def __init__(self, status_code, message):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class AttendanceClient:
    def __init__(self, base_url=None, http=None, timeout=10.0):
        if http is None:
            base_url = base_url or get_settings().api_url
            http = httpx.Client(base_url=base_url, timeout=timeout)
        self._http = http

    def _request(self, method, path, **kwargs):
        try:
            res = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(0, f"Could not reach attendance API: {exc}") from exc
        if res.is_error:
            try:
                message = res.json().get("message") or res.text
            except ValueError:
                message = res.text
            raise ApiError(res.status_code, message)
        return res.json()

    def list_students(self):
        return [StudentRecord.model_validate(d) for d in self._request("GET", ATTENDANCE_PATH)]

    def add_student(self, roll, name, status=None, remarks=None):
        payload = {"roll": roll, "name": name}
        if status is not None:
            payload["status"] = AttendanceStatus(status).value
        if remarks is not None:
            payload["remarks"] = remarks
        return StudentRecord.model_validate(self._request("POST", ATTENDANCE_PATH, json=payload))

    def update_student(self, student_id, **fields):
        data = self._request("PUT", f"{ATTENDANCE_PATH}/{student_id}", json=fields)
        return StudentRecord.model_validate(data)

    def delete_student(self, student_id):
        return self._request("DELETE", f"{ATTENDANCE_PATH}/{student_id}")

    def close(self):
        self._http.close()


class Roster:
    """Local view of the class list."""

    def __init__(self, client):
        self.client = client
        self.rows = []

    def refresh(self):
        self.rows = self.client.list_students()
        return self.rows

    def find(self, student_id):
        for row in self.rows:
            if row.id == student_id:
                return row
        return None

    def toggle(self, student_id):
        row = self.find(student_id)
        if row is None:
            self.refresh()
            row = self.find(student_id)
            if row is None:
                raise KeyError(student_id)
        updated = self.client.update_student(student_id, status=row.status.toggled().value)
        self.rows = [updated if r.id == student_id else r for r in self.rows]
        logger.info("Marked %s %s", updated.roll, updated.status.value)
        return updated

    def counts(self):
        present = sum(1 for r in self.rows if r.status is AttendanceStatus.present)
        return {"present": present, "absent": len(self.rows) - present}

    def render(self):
        headers = ("ID", "ROLL", "NAME", "STATUS", "REMARKS")
        table = [headers] + [
            (r.id, r.roll, r.name, r.status.value, r.remarks or "") for r in self.rows
        ]
        widths = [max(len(str(row[i])) for row in table) for i in range(len(headers))]
        lines = ["  ".join(str(cell).ljust(w) for cell, w in zip(row, widths)).rstrip() for row in table]
        totals = self.counts()
        lines.append(f"{len(self.rows)} students, {totals['present']} present, {totals['absent']} absent")
        return "\n".join(lines)


def build_parser():
    parser = argparse.ArgumentParser(prog="attendance-roster", description="Mark class attendance.")
    parser.add_argument("--url", help="attendance API base URL (default: ATTENDANCE_API_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="show the roster")

    add = sub.add_parser("add", help="add a student")
    add.add_argument("roll")
    add.add_argument("name")
    add.add_argument("--status", choices=[s.value for s in AttendanceStatus])
    add.add_argument("--remarks")

    toggle = sub.add_parser("toggle", help="flip a student between present and absent")
    toggle.add_argument("student_id")

    remove = sub.add_parser("remove", help="delete a student")
    remove.add_argument("student_id")
    return parser


def main(argv=None, client=None, out=None):
    args = build_parser().parse_args(argv)
    out = out or sys.stdout
    settings = get_settings()
    configure_logging(settings.log_level)
    owns_client = client is None
    if owns_client:
        client = AttendanceClient(base_url=args.url or settings.api_url)
    roster = Roster(client)
    try:
        if args.command == "add":
            client.add_student(args.roll, args.name, status=args.status, remarks=args.remarks)
        elif args.command == "toggle":
            roster.refresh()
            roster.toggle(args.student_id)
        elif args.command == "remove":
            result = client.delete_student(args.student_id)
            if not result.get("deleted"):
                print(f"No student with id {args.student_id}", file=out)
        roster.refresh()
        print(roster.render(), file=out)
    except ApiError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 1
    except KeyError:
        print(f"error: no student with id {args.student_id}", file=sys.stderr)
        return 1
    finally:
        if owns_client:
            client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
