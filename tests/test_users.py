"""Admin user management and group membership."""

from models.users import User

from conftest import headers_for


class TestListUsers:
    def test_paginated_and_sorted_by_surname(self, client, admin_headers, member, make_user, site) -> None:
        make_user("zed@inntrac.io", site=site, group=site.groups[0], first_name="Zed", surname="Zulu")
        res = client.get("/users", params={"page_size": 2}, headers=admin_headers)
        body = res.json()
        assert body["total"] == 3
        assert body["page_size"] == 2
        assert [u["surname"] for u in body["items"]] == ["Admin", "Kowalska"]

    def test_search(self, client, admin_headers, member) -> None:
        body = client.get("/users", params={"q": "kowal"}, headers=admin_headers).json()
        assert [u["email"] for u in body["items"]] == ["anna@inntrac.io"]

    def test_filter_by_group(self, client, admin_headers, member, site) -> None:
        body = client.get("/users", params={"groupId": site.groups[1].id}, headers=admin_headers).json()
        assert [u["email"] for u in body["items"]] == ["anna@inntrac.io"]

    def test_filter_by_site(self, client, admin_headers, member, site) -> None:
        body = client.get("/users", params={"siteId": site.id}, headers=admin_headers).json()
        assert body["total"] == 2

    def test_foreign_site_filter_is_forbidden(self, client, admin_headers, other_site) -> None:
        assert client.get("/users", params={"siteId": other_site.id}, headers=admin_headers).status_code == 403

    def test_people_of_other_sites_are_hidden(self, client, admin_headers, member, make_user, other_site) -> None:
        make_user("floor@inntrac.io", site=other_site, group=other_site.groups[0])
        make_user("loner@inntrac.io")
        body = client.get("/users", headers=admin_headers).json()
        assert sorted(u["email"] for u in body["items"]) == ["admin@inntrac.io", "anna@inntrac.io"]

    def test_descending_by_email(self, client, admin_headers, member) -> None:
        body = client.get("/users", params={"sort_by": "email", "order": "desc"}, headers=admin_headers).json()
        assert [u["email"] for u in body["items"]] == ["anna@inntrac.io", "admin@inntrac.io"]

    def test_admin_only(self, client, member_headers) -> None:
        assert client.get("/users", headers=member_headers).status_code == 403


class TestGetUser:
    def test_member_reads_self(self, client, member, member_headers) -> None:
        assert client.get(f"/users/{member.id}", headers=member_headers).json()["email"] == member.email

    def test_member_cannot_read_others(self, client, admin, member_headers) -> None:
        assert client.get(f"/users/{admin.id}", headers=member_headers).status_code == 403

    def test_admin_reads_own_site_member(self, client, member, admin_headers) -> None:
        assert client.get(f"/users/{member.id}", headers=admin_headers).status_code == 200

    def test_admin_cannot_read_foreign_user(self, client, make_user, admin_headers, other_site) -> None:
        stranger = make_user("floor@inntrac.io", site=other_site, group=other_site.groups[0])
        assert client.get(f"/users/{stranger.id}", headers=admin_headers).status_code == 403

    def test_missing(self, client, admin_headers) -> None:
        assert client.get("/users/999", headers=admin_headers).status_code == 404


class TestUpdateUser:
    def test_names_and_role(self, client, member, admin_headers) -> None:
        res = client.patch(f"/users/{member.id}", json={"firstName": " Annie ", "isAdmin": True}, headers=admin_headers)
        body = res.json()
        assert body["firstName"] == "Annie"
        assert body["isAdmin"] is True
        assert body["role"] == "admin"

    def test_default_site_must_be_a_membership(self, client, member, admin_headers, other_site) -> None:
        res = client.patch(f"/users/{member.id}", json={"defaultSiteId": other_site.id,
                                                         "defaultGroupId": other_site.groups[0].id},
                           headers=admin_headers)
        assert res.status_code == 400
        assert [e["field"] for e in res.json()["errors"]] == ["defaultSiteId", "defaultGroupId"]

    def test_admin_cannot_update_foreign_user(self, client, db, make_user, admin_headers, other_site) -> None:
        stranger = make_user("floor@inntrac.io", site=other_site, group=other_site.groups[0])
        res = client.patch(f"/users/{stranger.id}", json={"isAdmin": True}, headers=admin_headers)
        assert res.status_code == 403
        assert not db.get(User, stranger.id).is_admin

    def test_cannot_revoke_own_admin_role(self, client, admin, admin_headers) -> None:
        res = client.patch(f"/users/{admin.id}", json={"isAdmin": False}, headers=admin_headers)
        assert res.status_code == 400

    def test_members_cannot_update(self, client, member, member_headers) -> None:
        assert client.patch(f"/users/{member.id}", json={"isAdmin": True}, headers=member_headers).status_code == 403


class TestGroupMembership:
    def test_join_adds_site_and_defaults(self, client, db, make_user, admin_headers, site) -> None:
        user = make_user("new@inntrac.io")
        bar = site.groups[0]
        assert client.get(f"/sites/{site.id}", headers=headers_for(user)).status_code == 403

        res = client.post(f"/users/{user.id}/groups/{bar.id}", headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["defaultSiteId"] == site.id
        assert res.json()["defaultGroupId"] == bar.id

        user = db.get(User, user.id)
        assert [s.id for s in user.sites] == [site.id]
        # A member of the site can now see it
        assert client.get(f"/sites/{site.id}", headers=headers_for(user)).status_code == 200

    def test_join_keeps_existing_defaults(self, client, member, admin_headers, site) -> None:
        res = client.post(f"/users/{member.id}/groups/{site.groups[0].id}", headers=admin_headers)
        assert res.json()["defaultSiteId"] == site.id
        assert res.json()["defaultGroupId"] == site.groups[1].id

    def test_cannot_join_foreign_group(self, client, member, admin_headers, other_site) -> None:
        res = client.post(f"/users/{member.id}/groups/{other_site.groups[0].id}", headers=admin_headers)
        assert res.status_code == 403

    def test_leave_clears_default_group(self, client, member, admin_headers, site) -> None:
        res = client.delete(f"/users/{member.id}/groups/{site.groups[1].id}", headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["defaultGroupId"] is None

    def test_leave_unjoined_group(self, client, member, admin_headers, site) -> None:
        assert client.delete(f"/users/{member.id}/groups/{site.groups[0].id}", headers=admin_headers).status_code == 404
