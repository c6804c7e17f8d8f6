"""
Capability flag resolution tests.

Test blocks:
  1. Admin override
  2. Department-code and role-name grants
  3. Missing / stale reference data
  4. Maintenance composite flag
  5. Monotonicity in roles
"""

import itertools

import pytest

from kimtex_nav.services.capability_service import (
    CAPABILITY_RULES,
    CapabilityFlags,
    has_permission,
    resolve_capabilities,
)

DEPARTMENTS = [
    {"id": 1, "code": "DKM", "name": "Dokuma"},
    {"id": 2, "code": "SALES", "name": "Satış ve Pazarlama"},
    {"id": 3, "code": "INV", "name": "Depo ve Stok"},
    {"id": 4, "code": "ELB", "name": "Elektrik Bakım"},
]

ALL_FLAGS = CapabilityFlags.names()


# ═══════════════════════════════════════════════════════════════
# BLOCK 1: Admin override
# ═══════════════════════════════════════════════════════════════

class TestAdmin:
    def test_admin_sets_every_flag(self):
        flags = resolve_capabilities([{"name": "Admin"}], [], None)
        assert all(flags.to_dict().values())

    def test_admin_with_unrelated_department(self):
        flags = resolve_capabilities(
            [{"name": "Admin"}], DEPARTMENTS, {"department_id": 2},
        )
        assert flags.granted() == ALL_FLAGS

    def test_role_name_is_case_sensitive(self):
        flags = resolve_capabilities([{"name": "admin"}], [], None)
        assert not flags.is_admin
        assert flags.granted() == []


# ═══════════════════════════════════════════════════════════════
# BLOCK 2: Grants
# ═══════════════════════════════════════════════════════════════

class TestGrants:
    def test_department_code_grants_flag(self):
        flags = resolve_capabilities([], DEPARTMENTS, {"department_id": 1})
        assert flags.is_weaving
        assert flags.granted() == ["is_weaving"]

    def test_department_change_flips_flags(self):
        weaving = resolve_capabilities([], DEPARTMENTS, {"department_id": 1})
        sales = resolve_capabilities([], DEPARTMENTS, {"department_id": 2})
        assert weaving.is_weaving and not weaving.is_sales
        assert sales.is_sales and not sales.is_weaving

    @pytest.mark.parametrize("rule", CAPABILITY_RULES, ids=lambda r: r.flag)
    def test_role_name_grants_flag(self, rule):
        flags = resolve_capabilities([{"name": rule.role_name}], [], None)
        assert getattr(flags, rule.flag) is True
        assert not flags.is_admin

    def test_camel_case_department_key(self):
        flags = resolve_capabilities([], DEPARTMENTS, {"departmentId": 2})
        assert flags.is_sales

    def test_inventory_implies_both_warehouses(self):
        flags = resolve_capabilities([], DEPARTMENTS, {"department_id": 3})
        assert flags.is_inventory
        assert flags.is_yarn_warehouse
        assert flags.is_warehouse

    def test_warehouse_does_not_imply_inventory(self):
        flags = resolve_capabilities([{"name": "Kumaş Depo"}], [], None)
        assert flags.is_warehouse
        assert not flags.is_inventory
        assert not flags.is_yarn_warehouse

    def test_attribute_objects_are_accepted(self):
        class Rec:
            def __init__(self, **kw):
                self.__dict__.update(kw)

        flags = resolve_capabilities(
            [Rec(name="Dokuma")],
            [Rec(id=2, code="SALES", name="Satış")],
            Rec(department_id=2),
        )
        assert flags.is_weaving and flags.is_sales

    def test_deterministic(self):
        args = ([{"name": "Dokuma"}, {"name": "Numune"}], DEPARTMENTS, {"department_id": 4})
        assert resolve_capabilities(*args) == resolve_capabilities(*args)


# ═══════════════════════════════════════════════════════════════
# BLOCK 3: Graceful degradation
# ═══════════════════════════════════════════════════════════════

class TestDegradation:
    def test_empty_inputs_all_false(self):
        assert resolve_capabilities([], [], None).granted() == []

    def test_none_inputs_all_false(self):
        assert resolve_capabilities(None, None, None).granted() == []

    def test_stale_department_id(self):
        flags = resolve_capabilities([], DEPARTMENTS, {"department_id": 999})
        assert flags.granted() == []

    def test_user_without_department(self):
        flags = resolve_capabilities([{"name": "Dokuma"}], DEPARTMENTS, {"department_id": None})
        assert flags.granted() == ["is_weaving"]

    def test_departments_not_loaded_yet(self):
        flags = resolve_capabilities([], [], {"department_id": 1})
        assert not flags.is_weaving


# ═══════════════════════════════════════════════════════════════
# BLOCK 4: Maintenance composite
# ═══════════════════════════════════════════════════════════════

MAINTENANCE_ROLES = ("Elektrik Bakım", "Mekanik Bakım", "Bilgi İşlem")


@pytest.mark.parametrize("combo", list(itertools.product([False, True], repeat=3)))
def test_maintenance_staff_is_union(combo):
    roles = [{"name": name} for name, on in zip(MAINTENANCE_ROLES, combo) if on]
    flags = resolve_capabilities(roles, [], None)
    assert (flags.is_electric_maintenance, flags.is_mechanical_maintenance, flags.is_it) == combo
    assert flags.is_maintenance_staff is any(combo)


def test_maintenance_staff_from_department():
    flags = resolve_capabilities([], DEPARTMENTS, {"department_id": 4})
    assert flags.is_electric_maintenance
    assert flags.is_maintenance_staff


# ═══════════════════════════════════════════════════════════════
# BLOCK 5: Monotonicity
# ═══════════════════════════════════════════════════════════════

@pytest.mark.parametrize("extra", ["Admin", "Dokuma", "Sevkiyat", "Depo ve Stok", "Unknown"])
def test_adding_a_role_never_clears_a_flag(extra):
    base_roles = [{"name": "Numune"}, {"name": "Mekanik Bakım"}]
    user = {"department_id": 2}
    before = resolve_capabilities(base_roles, DEPARTMENTS, user).to_dict()
    after = resolve_capabilities(base_roles + [{"name": extra}], DEPARTMENTS, user).to_dict()
    for name, value in before.items():
        if value:
            assert after[name], name


def test_has_permission():
    perms = [{"code": "weaving:view_workorders"}, {"code": "sales:view_orders"}]
    assert has_permission(perms, "sales:view_orders")
    assert not has_permission(perms, "sales:manage_orders")
    assert not has_permission(None, "sales:view_orders")


def test_changing_department_code_flips_flag():
    user = {"department_id": 1}
    before = resolve_capabilities([], [{"id": 1, "code": "DKM", "name": "Dokuma"}], user)
    after = resolve_capabilities([], [{"id": 1, "code": "SALES", "name": "Dokuma"}], user)
    assert before.is_weaving and not after.is_weaving
    assert after.is_sales
