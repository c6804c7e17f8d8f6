"""
HTTP tests — navigation, user and reference-data endpoints.

Test blocks:
  1. Authentication required
  2. Reference data endpoints
  3. Navigation document
  4. Section toggle + session-backed expansion
  5. Identity change invalidation
"""

import json
import logging

import pytest

from kimtex_nav.middleware.logging_config import JSONFormatter
from kimtex_nav.models import db
from kimtex_nav.models.auth import Role, UserRole

NAV = "/api/v1/navigation"


@pytest.fixture()
def weaver(make_department, make_user):
    make_department("SALES", "Satış ve Pazarlama")
    dept = make_department("DKM", "Dokuma")
    return make_user("weaver", department=dept, roles=["Numune"], full_name="Ayşe Yılmaz")


# ═══════════════════════════════════════════════════════════════
# BLOCK 1: Authentication
# ═══════════════════════════════════════════════════════════════

class TestAuthRequired:
    @pytest.mark.parametrize("url", [
        NAV,
        f"{NAV}/catalog",
        "/api/v1/user/roles",
        "/api/v1/user/permissions",
        "/api/v1/user/me",
        "/api/v1/admin/departments",
    ])
    def test_missing_token(self, client, url):
        res = client.get(url)
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_AUTH_REQUIRED"

    def test_garbage_token(self, client):
        res = client.get(NAV, headers={"Authorization": "Bearer not.a.token"})
        assert res.status_code == 401

    def test_toggle_requires_token(self, client):
        assert client.post(f"{NAV}/sections/weaving/toggle").status_code == 401


# ═══════════════════════════════════════════════════════════════
# BLOCK 2: Reference data
# ═══════════════════════════════════════════════════════════════

class TestReferenceData:
    def test_departments(self, client, weaver, auth_header):
        res = client.get("/api/v1/admin/departments", headers=auth_header(weaver.id))
        assert res.status_code == 200
        assert [d["code"] for d in res.get_json()] == ["SALES", "DKM"]
        assert set(res.get_json()[0]) == {"id", "code", "name", "color"}

    def test_roles(self, client, weaver, auth_header):
        res = client.get("/api/v1/user/roles", headers=auth_header(weaver.id))
        assert res.get_json() == [{"name": "Numune"}]

    def test_permissions_empty(self, client, weaver, auth_header):
        res = client.get("/api/v1/user/permissions", headers=auth_header(weaver.id))
        assert res.status_code == 200
        assert res.get_json() == []

    def test_me(self, client, weaver, auth_header):
        res = client.get("/api/v1/user/me", headers=auth_header(weaver.id))
        data = res.get_json()
        assert data["username"] == "weaver"
        assert data["capabilities"] == ["is_weaving", "is_samples"]

    def test_me_for_deleted_user(self, client, auth_header):
        res = client.get("/api/v1/user/me", headers=auth_header(12345))
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"


# ═══════════════════════════════════════════════════════════════
# BLOCK 3: Navigation document
# ═══════════════════════════════════════════════════════════════

class TestNavigation:
    def test_document(self, client, weaver, auth_header):
        res = client.get(NAV, query_string={"path": "/weaving/work-orders"},
                         headers=auth_header(weaver.id))
        assert res.status_code == 200
        doc = res.get_json()
        assert [s["key"] for s in doc["sections"]] == ["weaving", "samples"]
        assert doc["active_section"] == "weaving"
        assert doc["title"] == "Dokuma"
        assert doc["hide_title"] is False
        assert doc["profile"]["initial"] == "A"
        assert doc["breadcrumbs"][0]["label"] == "Ana Sayfa"

    def test_explicit_title(self, client, weaver, auth_header):
        res = client.get(NAV, query_string={"path": "/samples/cards", "title": "Kartlar"},
                         headers=auth_header(weaver.id))
        assert res.get_json()["title"] == "Kartlar"

    def test_default_path(self, client, weaver, auth_header):
        doc = client.get(NAV, headers=auth_header(weaver.id)).get_json()
        assert doc["active_section"] is None
        assert doc["title"] == "Dokuma"

    def test_relative_path_rejected(self, client, weaver, auth_header):
        res = client.get(NAV, query_string={"path": "weaving"}, headers=auth_header(weaver.id))
        assert res.status_code == 422
        assert res.get_json()["details"] == {"path": "weaving"}

    def test_catalog_is_unfiltered(self, client, weaver, auth_header):
        res = client.get(f"{NAV}/catalog", headers=auth_header(weaver.id))
        assert len(res.get_json()) == 19


# ═══════════════════════════════════════════════════════════════
# BLOCK 4: Toggle
# ═══════════════════════════════════════════════════════════════

class TestToggle:
    def test_toggle_persists_in_session(self, client, weaver, auth_header):
        headers = auth_header(weaver.id)
        doc = client.get(NAV, query_string={"path": "/"}, headers=headers).get_json()
        assert doc["sections"][1]["expanded"] is False

        res = client.post(f"{NAV}/sections/samples/toggle", query_string={"path": "/"},
                          headers=headers)
        assert res.status_code == 200
        assert res.get_json()["sections"][1]["expanded"] is True

        doc = client.get(NAV, query_string={"path": "/"}, headers=headers).get_json()
        assert doc["sections"][1]["expanded"] is True

    def test_collapsed_active_section_stays_collapsed(self, client, weaver, auth_header):
        headers = auth_header(weaver.id)
        path = {"path": "/weaving/machines"}
        client.get(NAV, query_string=path, headers=headers)
        res = client.post(f"{NAV}/sections/weaving/toggle", query_string=path, headers=headers)
        assert res.get_json()["sections"][0]["expanded"] is False
        doc = client.get(NAV, query_string=path, headers=headers).get_json()
        assert doc["sections"][0]["expanded"] is False

    def test_next_page_in_collapsed_section_reopens_it(self, client, weaver, auth_header):
        headers = auth_header(weaver.id)
        client.get(NAV, query_string={"path": "/weaving/work-orders"}, headers=headers)
        res = client.post(f"{NAV}/sections/weaving/toggle",
                          query_string={"path": "/weaving/work-orders"}, headers=headers)
        assert res.get_json()["sections"][0]["expanded"] is False

        doc = client.get(NAV, query_string={"path": "/weaving/machines"}, headers=headers).get_json()
        weaving = doc["sections"][0]
        assert weaving["active_item"] == "/weaving/machines"
        assert weaving["expanded"] is True

    def test_toggle_logs_user_and_section(self, client, weaver, auth_header, caplog):
        with caplog.at_level(logging.INFO, logger="kimtex_nav.blueprints.navigation_bp"):
            client.post(f"{NAV}/sections/samples/toggle", headers=auth_header(weaver.id))
        record = next(r for r in caplog.records if "toggled" in r.getMessage())
        assert record.section == "samples"
        assert str(record.user_id) == str(weaver.id)

        entry = json.loads(JSONFormatter().format(record))
        assert entry["section"] == "samples"
        assert "user_id" in entry

    def test_toggle_invisible_section(self, client, weaver, auth_header):
        res = client.post(f"{NAV}/sections/admin/toggle", headers=auth_header(weaver.id))
        assert res.status_code == 404
        assert "MenuSection" in res.get_json()["error"]


# ═══════════════════════════════════════════════════════════════
# BLOCK 5: Identity change
# ═══════════════════════════════════════════════════════════════

class TestIdentityChange:
    def test_new_identity_drops_cached_roles(self, client, weaver, make_user, auth_header):
        other = make_user("other")
        client.get(NAV, headers=auth_header(other.id))
        client.get(NAV, headers=auth_header(weaver.id))

        # Grant a role behind the cache's back; same identity keeps the cached view.
        role = Role(name="Sevkiyat")
        db.session.add(role)
        db.session.flush()
        db.session.add(UserRole(user_id=weaver.id, role_id=role.id))
        db.session.commit()
        doc = client.get(NAV, headers=auth_header(weaver.id)).get_json()
        assert "shipment" not in [s["key"] for s in doc["sections"]]

        # Switching identity and back invalidates the returning user's entries.
        client.get(NAV, headers=auth_header(other.id))
        doc = client.get(NAV, headers=auth_header(weaver.id)).get_json()
        assert "shipment" in [s["key"] for s in doc["sections"]]
