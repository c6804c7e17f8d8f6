"""
Seed Service — idempotent reference data for the directory tables.

Seeds:
  - one department per capability rule (plus ADMIN)
  - the Admin role and one role per department
  - permission codes, granted to roles by area prefix
  - optionally one demo user per department (username = lower-case code,
    password = "<username>123")

Running it twice creates nothing new.
"""

import logging

from flask import current_app

from kimtex_nav.models import db
from kimtex_nav.models.auth import (
    Department,
    Permission,
    Role,
    RolePermission,
    User,
    UserRole,
)
from kimtex_nav.services.capability_service import ADMIN_ROLE, CAPABILITY_RULES
from kimtex_nav.utils.crypto import hash_password

logger = logging.getLogger(__name__)

ADMIN_DEPARTMENT = ("ADMIN", "Admin", "#6366f1")

DEPARTMENT_COLORS = {
    "SALES": "#3b82f6",
    "PROD": "#10b981",
    "INV": "#f59e0b",
    "QC": "#ef4444",
}

PERMISSIONS = [
    ("admin:view_users", "View Users"),
    ("admin:manage_users", "Manage Users"),
    ("admin:view_roles", "View Roles"),
    ("admin:manage_roles", "Manage Roles"),
    ("admin:view_departments", "View Departments"),
    ("admin:manage_departments", "Manage Departments"),
    ("sales:view_orders", "View Orders"),
    ("sales:manage_orders", "Manage Orders"),
    ("sales:view_customers", "View Customers"),
    ("sales:manage_customers", "Manage Customers"),
    ("production:view_workorders", "View Work Orders"),
    ("production:manage_workorders", "Manage Work Orders"),
    ("inventory:view_inventory", "View Inventory"),
    ("inventory:manage_inventory", "Manage Inventory"),
    ("quality:view_quality", "View Quality Data"),
    ("quality:manage_quality", "Manage Quality Data"),
    ("quality:view_raw", "View Raw Quality Data"),
    ("quality:manage_raw", "Manage Raw Quality Data"),
    ("planning:view_plans", "View Production Plans"),
    ("planning:manage_plans", "Manage Production Plans"),
    ("weaving:view_workorders", "View Weaving Work Orders"),
    ("weaving:manage_workorders", "Manage Weaving Work Orders"),
    ("product:view_designs", "View Product Designs"),
    ("product:manage_designs", "Manage Product Designs"),
    ("lab:view_tests", "View Laboratory Tests"),
    ("lab:manage_tests", "Manage Laboratory Tests"),
    ("kartela:view_swatches", "View Swatches"),
    ("kartela:manage_swatches", "Manage Swatches"),
    ("yarn:view_inventory", "View Yarn Inventory"),
    ("yarn:manage_inventory", "Manage Yarn Inventory"),
    ("warehouse:view_inventory", "View Warehouse Inventory"),
    ("warehouse:manage_inventory", "Manage Warehouse Inventory"),
    ("shipment:view_shipments", "View Shipments"),
    ("shipment:manage_shipments", "Manage Shipments"),
    ("maintenance:view_requests", "View Maintenance Requests"),
    ("maintenance:manage_requests", "Manage Maintenance Requests"),
]

# Department code → permission prefixes granted to its role.
DEPARTMENT_PERMISSION_PREFIXES = {
    "SALES": ("sales:",),
    "PROD": ("production:",),
    "INV": ("inventory:", "warehouse:"),
    "QC": ("quality:view_quality", "quality:manage_quality"),
    "PLN": ("planning:",),
    "DKM": ("weaving:",),
    "URG": ("product:",),
    "HKL": ("quality:view_raw", "quality:manage_raw"),
    "LAB": ("lab:",),
    "KRT": ("kartela:",),
    "IPD": ("yarn:",),
    "KDP": ("warehouse:",),
    "SVK": ("shipment:",),
    "ELB": ("maintenance:",),
    "MKB": ("maintenance:",),
    "BLG": ("maintenance:",),
}

BASE_PERMISSIONS = ("admin:view_departments",)


def _get_or_create(model, defaults=None, **lookup):
    instance = model.query.filter_by(**lookup).first()
    if instance is not None:
        return instance, False
    instance = model(**lookup, **(defaults or {}))
    db.session.add(instance)
    db.session.flush()
    return instance, True


def _grant(role, permission) -> bool:
    _, created = _get_or_create(RolePermission, role_id=role.id, permission_id=permission.id)
    return created


def seed_reference_data(demo_users: bool = False) -> dict:
    """Create missing departments, roles, permissions (and demo users).

    Returns counts of newly created rows per kind. Caller commits.
    """
    counts = {"departments": 0, "roles": 0, "permissions": 0, "grants": 0, "users": 0}

    permissions = {}
    for code, description in PERMISSIONS:
        perm, created = _get_or_create(Permission, code=code, defaults={"description": description})
        permissions[code] = perm
        counts["permissions"] += created

    admin_role, created = _get_or_create(
        Role, name=ADMIN_ROLE, defaults={"description": "System Administrator"},
    )
    counts["roles"] += created
    for perm in permissions.values():
        counts["grants"] += _grant(admin_role, perm)

    departments = [ADMIN_DEPARTMENT] + [
        (rule.department_code, rule.role_name, DEPARTMENT_COLORS.get(rule.department_code, "#3b82f6"))
        for rule in CAPABILITY_RULES
    ]
    for code, name, color in departments:
        dept, created = _get_or_create(Department, code=code, defaults={"name": name, "color": color})
        counts["departments"] += created

        if code == ADMIN_DEPARTMENT[0]:
            role = admin_role
        else:
            role, created = _get_or_create(
                Role, name=name, defaults={"description": f"{name} Department Role"},
            )
            counts["roles"] += created
            prefixes = DEPARTMENT_PERMISSION_PREFIXES.get(code, ()) + BASE_PERMISSIONS
            for perm_code, perm in permissions.items():
                if perm_code.startswith(prefixes):
                    counts["grants"] += _grant(role, perm)

        if demo_users:
            counts["users"] += _seed_demo_user(dept, role)

    logger.info("Reference data seeded: %s", counts)
    return counts


def _seed_demo_user(department, role) -> int:
    username = department.code.lower()
    user = User.query.filter_by(username=username).first()
    created = 0
    if user is None:
        rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
        user = User(
            username=username,
            password_hash=hash_password(f"{username}123", rounds=rounds),
            full_name=f"{department.name} User",
            email=f"{username}@tekstil.com",
            department_id=department.id,
            is_active=True,
        )
        db.session.add(user)
        db.session.flush()
        created = 1
    _get_or_create(UserRole, user_id=user.id, role_id=role.id)
    return created
