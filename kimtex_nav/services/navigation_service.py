"""
Navigation Service — assembles the navigation document for one request.

Steps, in order:
    1. load user, departments, roles, permissions (cached)
    2. resolve capability flags in one pass
    3. filter the catalog, resolve active section/item, sync expansion
    4. resolve title, hide-title flag and breadcrumbs

The caller passes the directory gateway and the session's expansion
state; nothing here touches Flask globals.
"""

import logging
from typing import Optional

from kimtex_nav.services.capability_service import resolve_capabilities, user_department_code
from kimtex_nav.services.menu_state import MenuExpansion
from kimtex_nav.services.navigation_catalog import (
    FOOTER_ITEMS,
    resolve_active_item,
    section_icon_class,
    visible_sections,
)
from kimtex_nav.services.page_title import (
    DEFAULT_APP_NAME,
    build_breadcrumbs,
    resolve_page_title,
    should_hide_title,
)

logger = logging.getLogger(__name__)

UNASSIGNED_DEPARTMENT = "Departman atanmamış"


def note_identity(directory, previous_user_id, user_id) -> bool:
    """Drop cached roles/permissions when the session identity changed.

    Returns True if an invalidation was issued.
    """
    if user_id is None or str(previous_user_id) == str(user_id):
        return False
    directory.invalidate_user(user_id)
    logger.info("Identity changed (%s -> %s); user cache invalidated", previous_user_id, user_id)
    return True


def _department_of(departments, user) -> Optional[dict]:
    if not user or user.get("department_id") is None:
        return None
    for department in departments:
        if department.get("id") == user["department_id"]:
            return department
    return None


def build_profile(user: Optional[dict], department: Optional[dict]) -> dict:
    full_name = (user or {}).get("full_name") or ""
    return {
        "full_name": full_name,
        "initial": full_name[:1].upper(),
        "department_name": department["name"] if department else UNASSIGNED_DEPARTMENT,
    }


def build_navigation(
    directory,
    user_id,
    path: Optional[str],
    *,
    expansion: Optional[MenuExpansion] = None,
    title: Optional[str] = None,
    breadcrumbs=None,
    app_name: str = DEFAULT_APP_NAME,
) -> dict:
    user = directory.user(user_id)
    departments = directory.departments()
    roles = directory.roles(user_id) if user else []
    permissions = directory.permissions(user_id) if user else []

    flags = resolve_capabilities(roles, departments, user)
    department = _department_of(departments, user)

    sections = visible_sections(flags)
    if expansion is None:
        expansion = MenuExpansion()
    active_key = expansion.sync(sections, path)

    logger.debug(
        "Navigation for user=%s path=%s dept=%s sections=%d active=%s",
        user_id, path, user_department_code(departments, user), len(sections), active_key,
    )

    section_docs = []
    for section in sections:
        expanded = expansion.is_expanded(section.key)
        active_item = resolve_active_item(path, section.items)
        section_docs.append({
            "key": section.key,
            "title": section.title,
            "icon": section.icon,
            "color": section.color,
            "icon_class": section_icon_class(section, expanded),
            "is_active": section.key == active_key,
            "expanded": expanded,
            "active_item": active_item.href if active_item else None,
            "items": [item.to_dict(path) for item in section.items],
        })

    return {
        "user": user,
        "profile": build_profile(user, department),
        "capabilities": flags.to_dict(),
        "permissions": [p["code"] for p in permissions],
        "active_section": active_key,
        "title": resolve_page_title(
            path,
            explicit_title=title,
            department_name=department["name"] if department else None,
            app_name=app_name,
        ),
        "hide_title": should_hide_title(path),
        "breadcrumbs": build_breadcrumbs(path, breadcrumbs),
        "sections": section_docs,
        "footer": [item.to_dict(path) for item in FOOTER_ITEMS],
    }
