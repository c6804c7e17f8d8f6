"""
Capability Service — role/department based capability flags.

Turns the raw directory data (the user's roles, the department list and
the current user record) into a flat set of named booleans that the
navigation catalog and individual pages use to gate content.

Evaluation rules:
  - Admin role is a universal override: every flag is True.
  - A business flag is True when the user's department code matches the
    flag's department code OR the user holds the flag's role name.
  - Some flags absorb others (yarn/fabric warehouse absorb inventory).
  - is_maintenance_staff is the union of the three maintenance flags.

Missing data is never an error: an empty role list, an empty department
list, no user, or a department_id that points at nothing all degrade to
"flag False". The result is deterministic for the same inputs.

Usage:
    from kimtex_nav.services.capability_service import resolve_capabilities

    flags = resolve_capabilities(roles, departments, current_user)
    if flags.is_weaving:
        ...
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Iterable, Mapping, Optional

ADMIN_ROLE = "Admin"


@dataclass(frozen=True)
class CapabilityRule:
    """One business area: flag name, department code and alternate role name."""

    flag: str
    department_code: str
    role_name: str
    absorbs: tuple[str, ...] = ()


# Evaluation order matters only for ``absorbs``: an absorbed flag must be
# declared before the flag that absorbs it.
CAPABILITY_RULES: tuple[CapabilityRule, ...] = (
    CapabilityRule("is_sales", "SALES", "Satış ve Pazarlama"),
    CapabilityRule("is_production", "PROD", "Üretim"),
    CapabilityRule("is_inventory", "INV", "Depo ve Stok"),
    CapabilityRule("is_quality", "QC", "Kalite Kontrol"),
    CapabilityRule("is_planning", "PLN", "Planlama"),
    CapabilityRule("is_weaving", "DKM", "Dokuma"),
    CapabilityRule("is_product_development", "URG", "ÜRGE"),
    CapabilityRule("is_raw_quality", "HKL", "Ham Kalite"),
    CapabilityRule("is_yarn_spinning", "IBK", "İplik Büküm"),
    CapabilityRule("is_samples", "NUM", "Numune"),
    CapabilityRule("is_laboratory", "LAB", "Laboratuvar"),
    CapabilityRule("is_kartela", "KRT", "Kartela"),
    CapabilityRule("is_yarn_warehouse", "IPD", "İplik Depo", absorbs=("is_inventory",)),
    CapabilityRule("is_warehouse", "KDP", "Kumaş Depo", absorbs=("is_inventory",)),
    CapabilityRule("is_shipment", "SVK", "Sevkiyat"),
    CapabilityRule("is_electric_maintenance", "ELB", "Elektrik Bakım"),
    CapabilityRule("is_mechanical_maintenance", "MKB", "Mekanik Bakım"),
    CapabilityRule("is_it", "BLG", "Bilgi İşlem"),
)

MAINTENANCE_FLAGS = ("is_electric_maintenance", "is_mechanical_maintenance", "is_it")


@dataclass(frozen=True)
class CapabilityFlags:
    is_admin: bool = False
    is_sales: bool = False
    is_production: bool = False
    is_inventory: bool = False
    is_quality: bool = False
    is_planning: bool = False
    is_weaving: bool = False
    is_product_development: bool = False
    is_raw_quality: bool = False
    is_yarn_spinning: bool = False
    is_samples: bool = False
    is_laboratory: bool = False
    is_kartela: bool = False
    is_yarn_warehouse: bool = False
    is_warehouse: bool = False
    is_shipment: bool = False
    is_electric_maintenance: bool = False
    is_mechanical_maintenance: bool = False
    is_it: bool = False
    is_maintenance_staff: bool = False

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)

    def granted(self) -> list[str]:
        """Names of the flags that are True, in declaration order."""
        return [name for name, value in self.to_dict().items() if value]


def _get(record: Any, *keys: str) -> Any:
    """Read the first present key from a mapping or attribute object."""
    for key in keys:
        if isinstance(record, Mapping):
            if key in record:
                return record[key]
        elif hasattr(record, key):
            return getattr(record, key)
    return None


def role_names(roles: Optional[Iterable[Any]]) -> set[str]:
    return {name for name in (_get(r, "name") for r in roles or ()) if name}


def user_department_code(departments: Optional[Iterable[Any]], current_user: Any) -> Optional[str]:
    """Department code of the current user, or None when unassigned or stale."""
    if current_user is None:
        return None
    department_id = _get(current_user, "department_id", "departmentId")
    if department_id is None:
        return None
    for department in departments or ():
        if _get(department, "id") == department_id:
            return _get(department, "code")
    return None


def resolve_capabilities(
    roles: Optional[Iterable[Any]],
    departments: Optional[Iterable[Any]],
    current_user: Any = None,
) -> CapabilityFlags:
    """Compute every capability flag in one pass."""
    names = role_names(roles)
    is_admin = ADMIN_ROLE in names
    department_code = user_department_code(departments, current_user)

    values: dict[str, bool] = {"is_admin": is_admin}
    for rule in CAPABILITY_RULES:
        values[rule.flag] = (
            is_admin
            or (department_code is not None and department_code == rule.department_code)
            or rule.role_name in names
            or any(values[absorbed] for absorbed in rule.absorbs)
        )

    values["is_maintenance_staff"] = any(values[flag] for flag in MAINTENANCE_FLAGS)
    return CapabilityFlags(**values)


def has_permission(permissions: Optional[Iterable[Any]], code: str) -> bool:
    """True if the permission list contains ``code``.

    Provided for pages that gate content by permission code; the
    navigation catalog itself gates by capability flags only.
    """
    return any(_get(p, "code") == code for p in permissions or ())
