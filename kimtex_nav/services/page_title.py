"""
Page title, title visibility and breadcrumb resolution for a request path.

Title lookup order:
    1. explicit title passed by the page
    2. first matching prefix in TITLE_TABLE
    3. title of the active sidebar section
    4. the user's department name
    5. the application name
"""

from typing import Iterable, Optional

from kimtex_nav.services.navigation_catalog import (
    NAVIGATION_CATALOG,
    find_section,
    resolve_active_item,
    resolve_active_section,
)

DEFAULT_APP_NAME = "Kimtex ERP"
HOME_CRUMB = {"label": "Ana Sayfa", "href": "/"}

# Checked in order; longer prefixes first.
TITLE_TABLE: tuple[tuple[str, str], ...] = (
    ("/admin/users", "Kullanıcı Yönetimi"),
    ("/admin/roles", "Yetkilendirme"),
    ("/admin", "Admin"),
    ("/sales/orders", "Sipariş Girişi"),
    ("/sales/customers", "Müşteri Yönetimi"),
    ("/sales/crm", "CRM"),
    ("/sales/opportunities", "Fırsatlar"),
    ("/sales", "Satış ve Pazarlama"),
    ("/production-tracking", "Üretim Takibi"),
    ("/production", "Üretim"),
    ("/inventory", "Depo ve Stok"),
    ("/quality", "Kalite Kontrol"),
    ("/dye-recipes", "Boya Reçeteleri"),
)

# Pages under these prefixes render their own header.
CUSTOM_HEADER_PREFIXES = ("/dye-recipes",)


def resolve_page_title(
    path: Optional[str],
    explicit_title: Optional[str] = None,
    department_name: Optional[str] = None,
    app_name: str = DEFAULT_APP_NAME,
) -> str:
    if explicit_title:
        return explicit_title
    if path:
        for prefix, title in TITLE_TABLE:
            if path.startswith(prefix):
                return title
        section = find_section(resolve_active_section(path))
        if section is not None:
            return section.title
    return department_name or app_name


def should_hide_title(path: Optional[str]) -> bool:
    return bool(path) and path.startswith(CUSTOM_HEADER_PREFIXES)


def build_breadcrumbs(path: Optional[str], crumbs: Optional[Iterable[dict]] = None) -> list[dict]:
    """Breadcrumb trail for ``path``, rooted at "Ana Sayfa".

    Explicit ``crumbs`` (dicts with ``label`` and ``href``) are appended
    as given. Without them the trail is derived from the catalog: the
    active section (linked to its first item), then the exactly matched
    item when it differs from that link. The last crumb carries
    ``current=True``.
    """
    trail = [dict(HOME_CRUMB)]
    if crumbs is not None:
        trail.extend({"label": c["label"], "href": c["href"]} for c in crumbs)
    else:
        section = find_section(resolve_active_section(path), NAVIGATION_CATALOG)
        if section is not None and section.items:
            section_href = section.items[0].href
            trail.append({"label": section.title, "href": section_href})
            item = resolve_active_item(path, section.items)
            if item is not None and item.href != section_href:
                trail.append({"label": item.label, "href": item.href})

    for crumb in trail:
        crumb["current"] = False
    trail[-1]["current"] = True
    return trail
