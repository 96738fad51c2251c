"""Sites (teams) and the groups inside them."""

from datetime import datetime

from models.group import Group
from models.shift import Shift
from models.site import Site
from models.users import User

from conftest import PASSWORD, headers_for


class TestSites:
    def test_admin_lists_only_own_sites(self, client, admin_headers, site, other_site) -> None:
        res = client.get("/sites", headers=admin_headers)
        assert [s["name"] for s in res.json()] == ["Downtown"]

    def test_member_lists_own_sites(self, client, member_headers, site, other_site) -> None:
        res = client.get("/sites", headers=member_headers)
        assert [s["name"] for s in res.json()] == ["Downtown"]

    def test_detail_has_groups_and_head_count(self, client, admin_headers, member, site) -> None:
        body = client.get(f"/sites/{site.id}", headers=admin_headers).json()
        assert [g["name"] for g in body["groups"]] == ["Bar", "Kitchen"]
        assert all(g["siteId"] == site.id for g in body["groups"])
        assert body["userCount"] == 2

    def test_member_cannot_view_foreign_site(self, client, member_headers, other_site) -> None:
        assert client.get(f"/sites/{other_site.id}", headers=member_headers).status_code == 403

    def test_missing_site(self, client, admin_headers) -> None:
        assert client.get("/sites/999", headers=admin_headers).status_code == 404

    def test_creator_joins_and_administers_new_site(self, client, db, make_user) -> None:
        owner = make_user("owner@inntrac.io")
        res = client.post("/sites", json={"name": " Harbour "}, headers=headers_for(owner))
        assert res.status_code == 201
        assert res.json()["name"] == "Harbour"

        db.refresh(owner)
        assert owner.is_admin
        assert [s.name for s in owner.sites] == ["Harbour"]
        assert owner.default_site_id == res.json()["id"]

    def test_member_of_a_site_cannot_add_sites(self, client, db, member, member_headers) -> None:
        assert client.post("/sites", json={"name": "Harbour"}, headers=member_headers).status_code == 403
        db.refresh(member)
        assert not member.is_admin
        assert db.query(Site).filter(Site.name == "Harbour").count() == 0

    def test_admin_adds_a_second_site(self, client, db, admin, admin_headers) -> None:
        assert client.post("/sites", json={"name": "Harbour"}, headers=admin_headers).status_code == 201
        db.refresh(admin)
        assert sorted(s.name for s in admin.sites) == ["Downtown", "Harbour"]

    def test_existing_default_site_is_kept(self, client, db, admin, admin_headers, site) -> None:
        client.post("/sites", json={"name": "Harbour"}, headers=admin_headers)
        db.refresh(admin)
        assert admin.default_site_id == site.id

    def test_empty_name_is_rejected(self, client, admin_headers) -> None:
        res = client.post("/sites", json={"name": ""}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "name"

    def test_rename(self, client, admin_headers, member_headers, site) -> None:
        assert client.put(f"/sites/{site.id}", json={"name": "Midtown"}, headers=member_headers).status_code == 403
        res = client.put(f"/sites/{site.id}", json={"name": "Midtown"}, headers=admin_headers)
        assert res.json()["name"] == "Midtown"

    def test_delete_refused_while_in_use(self, client, db, admin, admin_headers, site) -> None:
        db.add(Shift(user_id=admin.id, site_id=site.id, group_id=site.groups[0].id,
                     start_time=datetime(2024, 6, 3, 9), end_time=datetime(2024, 6, 3, 17)))
        db.commit()
        res = client.delete(f"/sites/{site.id}", headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "siteId"

    def test_delete_clears_defaults_and_groups(self, client, db, admin, admin_headers, make_user, other_site) -> None:
        admin.sites.append(other_site)
        db.commit()
        user = make_user("floor@inntrac.io", site=other_site, group=other_site.groups[0])
        res = client.delete(f"/sites/{other_site.id}", headers=admin_headers)
        assert res.status_code == 200

        assert db.query(Site).filter(Site.name == "Uptown").count() == 0
        assert db.query(Group).filter(Group.name == "Floor").count() == 0
        user = db.get(User, user.id)
        assert user.default_site_id is None
        assert user.default_group_id is None
        assert user.sites == []


class TestGroups:
    def test_defaults_to_callers_site(self, client, member_headers, site, other_site) -> None:
        res = client.get("/groups", headers=member_headers)
        assert [g["name"] for g in res.json()] == ["Bar", "Kitchen"]

    def test_explicit_site(self, client, db, admin, admin_headers, other_site) -> None:
        admin.sites.append(other_site)
        db.commit()
        res = client.get("/groups", params={"siteId": other_site.id}, headers=admin_headers)
        assert [g["name"] for g in res.json()] == ["Floor"]

    def test_member_cannot_list_foreign_groups(self, client, member_headers, other_site) -> None:
        res = client.get("/groups", params={"siteId": other_site.id}, headers=member_headers)
        assert res.status_code == 403

    def test_no_site_means_no_groups(self, client, make_user) -> None:
        loner = make_user("loner@inntrac.io")
        assert client.get("/groups", headers=headers_for(loner)).json() == []

    def test_create(self, client, admin_headers, member_headers, site) -> None:
        body = {"name": "Door", "siteId": site.id}
        assert client.post("/groups", json=body, headers=member_headers).status_code == 403
        res = client.post("/groups", json=body, headers=admin_headers)
        assert res.status_code == 201
        assert res.json()["siteId"] == site.id

    def test_create_in_unknown_site(self, client, admin_headers) -> None:
        res = client.post("/groups", json={"name": "Door", "siteId": 999}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "siteId"

    def test_rename(self, client, admin_headers, site) -> None:
        group = site.groups[0]
        res = client.put(f"/groups/{group.id}", json={"name": "Cocktails"}, headers=admin_headers)
        assert res.json()["name"] == "Cocktails"

    def test_delete_clears_default_group(self, client, db, admin_headers, member, site) -> None:
        kitchen = site.groups[1]
        res = client.delete(f"/groups/{kitchen.id}", headers=admin_headers)
        assert res.status_code == 200
        member = db.get(User, member.id)
        assert member.default_group_id is None
        assert member.groups == []

    def test_delete_refused_while_in_use(self, client, db, member, admin_headers, site) -> None:
        kitchen = site.groups[1]
        db.add(Shift(user_id=member.id, site_id=site.id, group_id=kitchen.id,
                     start_time=datetime(2024, 6, 3, 9), end_time=datetime(2024, 6, 3, 17)))
        db.commit()
        res = client.delete(f"/groups/{kitchen.id}", headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "groupId"

    def test_admin_cannot_manage_foreign_groups(self, client, admin_headers, other_site) -> None:
        floor = other_site.groups[0]
        assert client.get("/groups", params={"siteId": other_site.id}, headers=admin_headers).status_code == 403
        assert client.post("/groups", json={"name": "Door", "siteId": other_site.id},
                           headers=admin_headers).status_code == 403
        assert client.put(f"/groups/{floor.id}", json={"name": "Patio"}, headers=admin_headers).status_code == 403
        assert client.delete(f"/groups/{floor.id}", headers=admin_headers).status_code == 403


class TestSiteIsolation:
    def test_admin_cannot_touch_foreign_site(self, client, db, admin_headers, other_site) -> None:
        assert client.get(f"/sites/{other_site.id}", headers=admin_headers).status_code == 403
        assert client.put(f"/sites/{other_site.id}", json={"name": "Mine"}, headers=admin_headers).status_code == 403
        assert client.delete(f"/sites/{other_site.id}", headers=admin_headers).status_code == 403
        assert db.get(Site, other_site.id).name == "Uptown"

    def test_founding_a_site_only_grants_rights_over_it(self, client, admin, member, site, other_site) -> None:
        client.post("/account/login", json={"email": admin.email, "password": PASSWORD})
        client.post("/account/register", json={"email": "eve@inntrac.io", "password": PASSWORD})
        token = client.post("/account/login", json={"email": "eve@inntrac.io", "password": PASSWORD}).json()["token"]
        headers = {"Authorization": f"Bearer {token}"}
        assert client.post("/sites", json={"name": "Eve's Bar"}, headers=headers).status_code == 201

        assert [s["name"] for s in client.get("/sites", headers=headers).json()] == ["Eve's Bar"]
        users = client.get("/users", headers=headers).json()
        assert [u["email"] for u in users["items"]] == ["eve@inntrac.io"]
        logs = client.get("/logs", headers=headers).json()
        assert {item["userId"] for item in logs["items"]} == {users["items"][0]["id"]}
        assert client.get(f"/users/{member.id}", headers=headers).status_code == 403
        assert client.delete(f"/sites/{other_site.id}", headers=headers).status_code == 403
        assert client.delete(f"/sites/{site.id}", headers=headers).status_code == 403
