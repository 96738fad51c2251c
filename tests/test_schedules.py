"""Schedule rows, bulk operations and the time-off workflow."""

from datetime import datetime

import pytest

from models.schedule import Schedule, ScheduleType
from models.shift import Shift

from conftest import MONDAY, headers_for

WEEK = {"weekStart": "2024-06-03T00:00:00", "weekEnd": "2024-06-10T00:00:00"}


def _body(user, site, group, start="2024-06-04T09:00:00", end="2024-06-04T17:00:00", **extra):
    body = {"userId": user.id, "siteId": site.id, "groupId": group.id, "startTime": start, "endTime": end}
    body.update(extra)
    return body


def _add(db, user, site, group, start, end=None, type_=ScheduleType.PLANNED):
    schedule = Schedule(user_id=user.id, site_id=site.id, group_id=group.id, start_time=start,
                        end_time=end or start, type=type_.value, hours=0.0)
    db.add(schedule)
    db.commit()
    return schedule


class TestAddSchedule:
    def test_hours_are_computed_from_the_interval(self, client, admin_headers, member, site) -> None:
        res = client.post("/schedules", json=_body(member, site, site.groups[1], end="2024-06-04T13:30:00", hours=99),
                          headers=admin_headers)
        assert res.status_code == 201
        body = res.json()
        assert body["hours"] == 4.5
        assert body["type"] == 0
        assert body["status"] is False

    @pytest.mark.parametrize("code", [1, 2, 5])
    def test_unknown_type_codes_are_rejected(self, client, admin_headers, member, site, code) -> None:
        res = client.post("/schedules", json=_body(member, site, site.groups[1], type=code), headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "type"

    def test_day_marker_with_equal_times(self, client, admin_headers, member, site) -> None:
        res = client.post("/schedules", json=_body(member, site, site.groups[1], end="2024-06-04T09:00:00"),
                          headers=admin_headers)
        assert res.status_code == 201
        assert res.json()["hours"] == 0

    def test_reversed_interval(self, client, admin_headers, member, site) -> None:
        res = client.post("/schedules", json=_body(member, site, site.groups[1], end="2024-06-04T08:00:00"),
                          headers=admin_headers)
        assert [e["field"] for e in res.json()["errors"]] == ["startTime"]

    def test_update_and_delete(self, client, db, admin_headers, member, site) -> None:
        created = client.post("/schedules", json=_body(member, site, site.groups[1]), headers=admin_headers).json()
        res = client.put(f"/schedules/{created['id']}", json=_body(member, site, site.groups[1], status=True),
                         headers=admin_headers)
        assert res.json()["status"] is True

        assert client.delete(f"/schedules/{created['id']}", headers=admin_headers).status_code == 200
        assert db.query(Schedule).count() == 0
        assert client.put("/schedules/999", json=_body(member, site, site.groups[1]), headers=admin_headers).status_code == 404


class TestListRows:
    def test_every_site_user_gets_a_row(self, client, admin, admin_headers, member, make_user, other_site) -> None:
        make_user("elsewhere@inntrac.io", site=other_site, group=other_site.groups[0])
        rows = client.get("/schedules", params=WEEK, headers=admin_headers).json()
        assert [r["email"] for r in rows] == ["admin@inntrac.io", "anna@inntrac.io"]
        assert all(r["schedules"] == [] and r["shifts"] == [] for r in rows)

    def test_row_contents(self, client, db, admin_headers, member, site) -> None:
        kitchen = site.groups[1]
        _add(db, member, site, kitchen, datetime(2024, 6, 4, 9), datetime(2024, 6, 4, 17))
        _add(db, member, site, kitchen, datetime(2024, 6, 10, 9), datetime(2024, 6, 10, 17))
        db.add(Shift(user_id=member.id, site_id=site.id, group_id=kitchen.id,
                     start_time=datetime(2024, 6, 5, 9), end_time=datetime(2024, 6, 5, 17)))
        db.commit()

        rows = client.get("/schedules", params={**WEEK, "userId": member.id}, headers=admin_headers).json()
        [row] = rows
        assert row["firstName"] == "Anna"
        assert row["site"]["name"] == "Downtown"
        assert row["group"]["name"] == "Kitchen"
        assert [s["startTime"] for s in row["schedules"]] == ["2024-06-04T09:00:00"]
        assert [s["startTime"] for s in row["shifts"]] == ["2024-06-05T09:00:00"]

    def test_group_filter(self, client, admin_headers, member, site) -> None:
        rows = client.get("/schedules", params={**WEEK, "groupId": site.groups[1].id}, headers=admin_headers).json()
        assert [r["email"] for r in rows] == ["anna@inntrac.io"]

    def test_search_term(self, client, admin_headers, member) -> None:
        rows = client.get("/schedules", params={**WEEK, "searchTerm": "ada"}, headers=admin_headers).json()
        assert [r["email"] for r in rows] == ["admin@inntrac.io"]

    def test_member_cannot_read_foreign_site(self, client, member_headers, other_site) -> None:
        res = client.get("/schedules", params={**WEEK, "siteId": other_site.id}, headers=member_headers)
        assert res.status_code == 403

    def test_no_site(self, client, make_user) -> None:
        loner = make_user("loner@inntrac.io")
        assert client.get("/schedules", headers=headers_for(loner)).json() == []


class TestBulk:
    def test_bulk_create(self, client, db, admin_headers, member, site) -> None:
        payload = [_body(member, site, site.groups[1], start=f"2024-06-0{d}T09:00:00", end=f"2024-06-0{d}T17:00:00")
                   for d in (3, 4, 5)]
        res = client.post("/schedules/bulk", json=payload, headers=admin_headers)
        assert res.status_code == 201
        assert [s["hours"] for s in res.json()] == [8.0, 8.0, 8.0]
        assert db.query(Schedule).count() == 3

    def test_bulk_create_is_all_or_nothing(self, client, db, admin_headers, member, site) -> None:
        good = _body(member, site, site.groups[1])
        bad = {**good, "userId": 999}
        res = client.post("/schedules/bulk", json=[good, bad], headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["errors"] == [{"field": "userId", "message": "Schedule 2: Invalid user"}]
        assert db.query(Schedule).count() == 0

    def test_bulk_update(self, client, db, admin_headers, member, site) -> None:
        schedule = _add(db, member, site, site.groups[1], datetime(2024, 6, 4), type_=ScheduleType.TIME_OFF_REQUESTED)
        item = _body(member, site, site.groups[1], start="2024-06-04T00:00:00", end="2024-06-04T00:00:00",
                     id=schedule.id, type=4)
        res = client.put("/schedules/bulk", json=[item], headers=admin_headers)
        assert res.status_code == 200
        assert res.json()[0]["type"] == 4

    def test_bulk_update_unknown_id(self, client, admin_headers, member, site) -> None:
        res = client.put("/schedules/bulk", json=[_body(member, site, site.groups[1], id=999)], headers=admin_headers)
        assert res.status_code == 404

    def test_bulk_create_checks_membership(self, client, db, admin_headers, member, site) -> None:
        res = client.post("/schedules/bulk", json=[_body(member, site, site.groups[0])], headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["errors"] == [{"field": "groupId", "message": "Schedule 1: User is not a member of this group"}]
        assert db.query(Schedule).count() == 0

    def test_bulk_create_into_foreign_site(self, client, db, admin_headers, make_user, other_site) -> None:
        stranger = make_user("floor@inntrac.io", site=other_site, group=other_site.groups[0])
        res = client.post("/schedules/bulk", json=[_body(stranger, other_site, other_site.groups[0])],
                          headers=admin_headers)
        assert res.status_code == 403
        assert db.query(Schedule).count() == 0

    def test_members_cannot_bulk_create(self, client, member_headers, member, site) -> None:
        res = client.post("/schedules/bulk", json=[_body(member, site, site.groups[1])], headers=member_headers)
        assert res.status_code == 403


class TestTimeOff:
    def _request(self, user, site, group, dates, **extra):
        body = {"userId": user.id, "siteId": site.id, "groupId": group.id, "dates": dates}
        body.update(extra)
        return body

    def test_member_requests_for_self(self, client, db, member, member_headers, site) -> None:
        dates = ["2024-06-05T00:00:00", "2024-06-04T00:00:00", "2024-06-05T00:00:00"]
        res = client.post("/schedules/time-off", json=self._request(member, site, site.groups[1], dates),
                          headers=member_headers)
        assert res.status_code == 201
        body = res.json()
        assert [s["startTime"] for s in body] == ["2024-06-04T00:00:00", "2024-06-05T00:00:00"]
        assert all(s["type"] == 3 and s["hours"] == 0 and s["startTime"] == s["endTime"] for s in body)
        assert db.query(Schedule).count() == 2

    def test_member_cannot_request_for_others(self, client, admin, member_headers, site) -> None:
        res = client.post("/schedules/time-off", json=self._request(admin, site, site.groups[0], ["2024-06-04T00:00:00"]),
                          headers=member_headers)
        assert res.status_code == 403

    def test_member_cannot_self_accept(self, client, member, member_headers, site) -> None:
        res = client.post("/schedules/time-off",
                          json=self._request(member, site, site.groups[1], ["2024-06-04T00:00:00"], type=4),
                          headers=member_headers)
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "type"

    def test_member_cannot_file_into_foreign_site(self, client, db, member, member_headers, other_site) -> None:
        res = client.post("/schedules/time-off",
                          json=self._request(member, other_site, other_site.groups[0], ["2024-06-04T00:00:00"]),
                          headers=member_headers)
        assert res.status_code == 400
        assert [e["field"] for e in res.json()["errors"]] == ["siteId", "groupId"]
        assert db.query(Schedule).count() == 0

    def test_admin_cannot_file_for_foreign_site(self, client, db, admin_headers, make_user, other_site) -> None:
        stranger = make_user("floor@inntrac.io", site=other_site, group=other_site.groups[0])
        res = client.post("/schedules/time-off",
                          json=self._request(stranger, other_site, other_site.groups[0], ["2024-06-04T00:00:00"]),
                          headers=admin_headers)
        assert res.status_code == 403
        assert db.query(Schedule).count() == 0

    def test_needs_at_least_one_date(self, client, member, member_headers, site) -> None:
        res = client.post("/schedules/time-off", json=self._request(member, site, site.groups[1], []),
                          headers=member_headers)
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "dates"


class TestNotifications:
    def test_pending_requests_grouped_by_user(self, client, db, admin, admin_headers, member, site) -> None:
        kitchen, bar = site.groups[1], site.groups[0]
        _add(db, member, site, kitchen, datetime(2024, 6, 5), type_=ScheduleType.TIME_OFF_REQUESTED)
        _add(db, member, site, kitchen, datetime(2024, 6, 4), type_=ScheduleType.TIME_OFF_REQUESTED)
        _add(db, admin, site, bar, datetime(2024, 6, 6), type_=ScheduleType.TIME_OFF_REQUESTED)
        _add(db, member, site, kitchen, datetime(2024, 6, 7), type_=ScheduleType.TIME_OFF_ACCEPTED)
        _add(db, member, site, kitchen, MONDAY)

        items = client.get("/schedules/notifications", headers=admin_headers).json()
        assert [i["userId"] for i in items] == sorted([admin.id, member.id])
        mine = next(i for i in items if i["userId"] == member.id)
        assert mine["firstName"] == "Anna"
        assert [s["startTime"] for s in mine["schedules"]] == ["2024-06-04T00:00:00", "2024-06-05T00:00:00"]

    def test_admin_only(self, client, member_headers) -> None:
        assert client.get("/schedules/notifications", headers=member_headers).status_code == 403

    def test_reject_deletes_only_pending_requests(self, client, db, admin_headers, member, site) -> None:
        kitchen = site.groups[1]
        pending = _add(db, member, site, kitchen, datetime(2024, 6, 4), type_=ScheduleType.TIME_OFF_REQUESTED)
        planned = _add(db, member, site, kitchen, datetime(2024, 6, 5))

        res = client.post("/schedules/reject", json={"ids": [pending.id, planned.id]}, headers=admin_headers)
        assert res.json() == {"deleted": 1}
        assert [s.id for s in db.query(Schedule).all()] == [planned.id]

    def test_foreign_site_is_forbidden(self, client, admin_headers, other_site) -> None:
        res = client.get("/schedules/notifications", params={"siteId": other_site.id}, headers=admin_headers)
        assert res.status_code == 403

    def test_reject_leaves_foreign_requests_alone(self, client, db, admin_headers, make_user, other_site) -> None:
        stranger = make_user("floor@inntrac.io", site=other_site, group=other_site.groups[0])
        foreign = _add(db, stranger, other_site, other_site.groups[0], datetime(2024, 6, 4),
                       type_=ScheduleType.TIME_OFF_REQUESTED)

        res = client.post("/schedules/reject", json={"ids": [foreign.id]}, headers=admin_headers)
        assert res.json() == {"deleted": 0}
        assert db.query(Schedule).count() == 1

    def test_reject_needs_ids(self, client, admin_headers) -> None:
        assert client.post("/schedules/reject", json={"ids": []}, headers=admin_headers).status_code == 400
