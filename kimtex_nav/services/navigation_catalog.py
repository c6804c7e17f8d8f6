"""
Navigation Catalog — declarative sidebar sections and path matching.

The whole sidebar is one data table (NAVIGATION_CATALOG) interpreted by a
handful of pure functions:

    visible_sections(flags)        — sections whose predicate holds, in declared order
    resolve_active_section(path)   — prefix match, first hit in SECTION_PREFIXES wins
    resolve_active_item(path, ...) — exact href match only

A section stays "active" while the user browses any of its sub-paths, but
only the exact leaf is highlighted. Items are not filtered individually;
visibility is decided per section.

Section predicates mirror the access rules used in production verbatim,
including the OR-compositions that grant a section to several departments.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from kimtex_nav.services.capability_service import CapabilityFlags

logger = logging.getLogger(__name__)

ACTIVE_ICON_CLASS = "text-blue-700"
MUTED_ICON_CLASS = "text-gray-500"


@dataclass(frozen=True)
class MenuItem:
    href: str
    label: str
    icon: str

    def to_dict(self, active_path: Optional[str] = None) -> dict:
        is_active = active_path == self.href
        return {
            "href": self.href,
            "label": self.label,
            "icon": self.icon,
            "is_active": is_active,
            "icon_class": item_icon_class(is_active),
        }


@dataclass(frozen=True)
class MenuSection:
    key: str
    title: str
    icon: str
    color: str
    visible: Callable[[CapabilityFlags], bool] = field(compare=False, repr=False)
    items: tuple[MenuItem, ...] = ()
    default_open: bool = False

    def is_visible(self, flags: CapabilityFlags) -> bool:
        return bool(self.visible(flags))


def section_icon_class(section: MenuSection, expanded: bool) -> str:
    return ACTIVE_ICON_CLASS if expanded else section.color


def item_icon_class(is_active: bool) -> str:
    return ACTIVE_ICON_CLASS if is_active else MUTED_ICON_CLASS


# ═══════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════

NAVIGATION_CATALOG: tuple[MenuSection, ...] = (
    MenuSection(
        key="yonetim",
        title="Şirket Yönetimi",
        icon="line-chart",
        color="text-blue-500",
        visible=lambda f: f.is_admin,
        items=(
            MenuItem("/yonetim/dashboard", "Yönetim Paneli", "bar-chart"),
            MenuItem("/yonetim/finansal-rapor", "Finansal Raporlar", "credit-card"),
            MenuItem("/yonetim/uretim-raporu", "Üretim Raporları", "factory"),
            MenuItem("/yonetim/satis-raporu", "Satış Raporları", "shopping-cart"),
        ),
    ),
    MenuSection(
        key="admin",
        title="Admin",
        icon="settings",
        color="text-indigo-500",
        visible=lambda f: f.is_admin,
        items=(
            MenuItem("/admin/users", "Kullanıcı Yönetimi", "users"),
            MenuItem("/admin/operators", "Operatör Yönetimi", "factory"),
            MenuItem("/admin/roles", "Yetkilendirme", "lock"),
            MenuItem("/admin/labels", "Etiket Yönetimi", "tag"),
            MenuItem("/admin/notification-test", "Bildirim Testi", "bell"),
            MenuItem("/admin/notification-management", "Bildirim Yönetimi", "bell"),
            MenuItem("/admin/machines-management", "Makine Yönetimi", "cog"),
        ),
    ),
    MenuSection(
        key="sales",
        title="Satış ve Pazarlama",
        icon="shopping-cart",
        color="text-blue-500",
        visible=lambda f: f.is_sales,
        items=(
            MenuItem("/sales/orders", "Sipariş Girişi", "shopping-cart"),
            MenuItem("/sales/customers", "Müşteri Yönetimi", "user-plus"),
            MenuItem("/sales/crm", "CRM", "users"),
            MenuItem("/sales/opportunities", "Fırsatlar", "target"),
            MenuItem("/sales/reports", "Raporlar", "bar-chart"),
            MenuItem("/sales/sample-requests", "Numune Talepleri", "file-text"),
        ),
    ),
    MenuSection(
        key="planning",
        title="Planlama",
        icon="calendar",
        color="text-purple-500",
        visible=lambda f: f.is_planning or f.is_admin or f.is_production,
        default_open=True,
        items=(
            MenuItem("/planning/advanced-dashboard", "Planlama Merkezi", "area-chart"),
            MenuItem("/planning/capacity", "Kapasite Planlama", "brain-circuit"),
            MenuItem("/planning/gantt", "Gantt Şeması", "gantt-chart"),
            MenuItem("/planning/calendar", "Planlama Takvimi", "calendar-days"),
            MenuItem("/planning/simulation", "Simülasyon Merkezi", "flask-conical"),
            MenuItem("/planning/templates", "Rota Şablonları", "git-branch"),
            MenuItem("/planning/kpis", "KPI Yönetimi", "line-chart"),
            MenuItem("/planning/optimization", "Üretim Optimizasyonu", "sparkles"),
            MenuItem("/planning/monitoring", "Canlı İzleme", "eye"),
        ),
    ),
    MenuSection(
        key="production-tracking",
        title="Üretim Takibi",
        icon="list-checks",
        color="text-emerald-500",
        visible=lambda f: f.is_production or f.is_admin,
        items=(
            MenuItem("/production-tracking/refakat-cards", "Refakat Kartları", "file-text"),
            MenuItem("/production-tracking/refakat-card-new", "Yeni Refakat Kartı", "plus-circle"),
            MenuItem("/production-tracking/barcode-scan", "Barkod Tarama", "qr-code"),
        ),
    ),
    MenuSection(
        key="weaving",
        title="Dokuma",
        icon="layers",
        color="text-cyan-500",
        visible=lambda f: f.is_weaving or f.is_production,
        items=(
            MenuItem("/weaving/work-orders", "İş Emirleri", "layers"),
            MenuItem("/weaving/warp-preparation", "Çözgü Hazırlama", "scissors-line-dashed"),
            MenuItem("/weaving/machines", "Makine Yönetimi", "cog"),
        ),
    ),
    MenuSection(
        key="product-development",
        title="Ürün Geliştirme",
        icon="pen-tool",
        color="text-pink-500",
        visible=lambda f: f.is_product_development or f.is_production,
        items=(
            MenuItem("/product-development/fabric-design", "Kumaş Tasarımları", "layout-grid"),
            MenuItem("/product-development/weave-patterns", "Dokuma Desenleri", "grid-3x3"),
            MenuItem("/product-development/fabric-types", "Kumaş Tipleri", "database"),
        ),
    ),
    MenuSection(
        key="raw-quality",
        title="Ham Kalite Kontrol",
        icon="clipboard-check",
        color="text-purple-500",
        visible=lambda f: f.is_raw_quality or f.is_quality or f.is_production,
        items=(
            MenuItem("/raw-quality/inspection", "Muayene", "clipboard-check"),
            MenuItem("/raw-quality/defects", "Kusur Raporlama", "alert-triangle"),
        ),
    ),
    MenuSection(
        key="yarn-spinning",
        title="İplik Büküm",
        icon="clock",
        color="text-fuchsia-500",
        visible=lambda f: f.is_yarn_spinning or f.is_production,
        items=(
            MenuItem("/yarn-spinning/work-orders", "İş Emirleri", "layers"),
            MenuItem("/yarn-spinning/twisting-orders", "Büküm Siparişleri", "clock"),
            MenuItem("/yarn-spinning/machines", "Makine Yönetimi", "cog"),
        ),
    ),
    MenuSection(
        key="samples",
        title="Numune Bölümü",
        icon="bookmark",
        color="text-orange-500",
        visible=lambda f: f.is_samples,
        items=(
            MenuItem("/samples/requests", "Numune Talepleri", "layers"),
            MenuItem("/samples/tracking", "Numune Takibi", "line-chart"),
            MenuItem("/samples/cards", "Numune Kartları", "qr-code"),
        ),
    ),
    MenuSection(
        key="laboratory",
        title="Laboratuvar",
        icon="beaker",
        color="text-cyan-600",
        visible=lambda f: f.is_laboratory or f.is_quality or f.is_production,
        items=(
            MenuItem("/laboratory/yarn-tests", "İplik Testleri", "ruler"),
            MenuItem("/laboratory/fabric-tests", "Kumaş Testleri", "microscope"),
        ),
    ),
    MenuSection(
        key="kartela",
        title="Kartela",
        icon="palette",
        color="text-emerald-600",
        visible=lambda f: f.is_kartela,
        items=(
            MenuItem("/fabric-samples/kartela", "Kartela Yönetimi", "bookmark"),
            MenuItem("/fabric-samples/kartela/ship", "Kartela Sevkiyat", "truck"),
            MenuItem("/fabric-samples/kartela/reports", "Kartela Raporları", "file-text"),
            MenuItem("/fabric-samples/kartela/qr-print", "QR Kod Yazdır", "qr-code"),
        ),
    ),
    MenuSection(
        key="inventory",
        title="Depo ve Stok",
        icon="box",
        color="text-amber-500",
        visible=lambda f: f.is_inventory,
        items=(
            MenuItem("/inventory/raw-materials", "Hammaddeler", "database"),
        ),
    ),
    MenuSection(
        key="quality",
        title="Kalite Kontrol",
        icon="badge-check",
        color="text-red-500",
        visible=lambda f: f.is_quality,
        items=(
            MenuItem("/quality/final-inspection", "Final Kalite Kontrol", "clipboard-check"),
            MenuItem("/quality/control", "İşlem Girişi", "microscope"),
            MenuItem("/quality/issues", "Hata Raporları", "alert-triangle"),
            MenuItem("/quality/reports", "Raporlar", "bar-chart"),
        ),
    ),
    MenuSection(
        key="dye-recipes",
        title="Boya Reçeteleri",
        icon="test-tube",
        color="text-cyan-600",
        visible=lambda f: f.is_quality or f.is_product_development or f.is_admin,
        items=(
            MenuItem("/dye-recipes/list", "Reçete Listesi", "beaker"),
            MenuItem("/dye-recipes/new", "Yeni Reçete", "plus-circle"),
            MenuItem("/dye-recipes/pending-assignments", "İş Listesi", "clock"),
            MenuItem("/dye-recipes/chemicals", "Kimyasallar", "test-tube"),
            MenuItem("/dye-recipes/templates", "Reçete Şablonları", "bookmark"),
            MenuItem("/dye-recipes/reports", "Raporlar", "bar-chart-3"),
        ),
    ),
    MenuSection(
        key="yarn-warehouse",
        title="İplik Depo",
        icon="package",
        color="text-yellow-700",
        visible=lambda f: f.is_yarn_warehouse or f.is_inventory,
        items=(
            MenuItem("/yarn-warehouse/inventory", "Envanter", "boxes"),
            MenuItem("/yarn-warehouse/issue-cards", "İplik Çıkış Kartları", "file-text"),
            MenuItem("/yarn-warehouse/movements", "Hareketler", "move-right"),
            MenuItem("/yarn-warehouse/reports", "Raporlar", "bar-chart"),
            MenuItem("/yarn-warehouse/yarn-types", "İplik Tipleri", "database"),
        ),
    ),
    MenuSection(
        key="warehouse",
        title="Kumaş Depo",
        icon="boxes",
        color="text-amber-500",
        visible=lambda f: f.is_warehouse or f.is_inventory,
        items=(
            MenuItem("/warehouse/inventory", "Envanter", "boxes"),
            MenuItem("/warehouse/movements", "Stok Hareketleri", "move-right"),
            MenuItem("/warehouse/reports", "Raporlar", "bar-chart"),
        ),
    ),
    MenuSection(
        key="shipment",
        title="Sevkiyat",
        icon="truck",
        color="text-blue-600",
        visible=lambda f: f.is_shipment,
        items=(
            MenuItem("/shipment/planning", "Sevkiyat Planlaması", "calendar"),
            MenuItem("/shipment/documents", "İrsaliye/Fatura", "file-text"),
            MenuItem("/shipment/packaging", "Ambalajlama", "package"),
            MenuItem("/shipment/tracking", "Sevkiyat Takibi", "line-chart"),
        ),
    ),
    MenuSection(
        key="maintenance",
        title="Bakım",
        icon="settings",
        color="text-orange-600",
        visible=lambda f: f.is_maintenance_staff,
        items=(
            MenuItem("/maintenance", "Bakım Talepleri", "clipboard-check"),
            MenuItem("/maintenance/create", "Talep Oluştur", "file-text"),
            MenuItem("/maintenance/plans", "Bakım Planları", "calendar"),
            MenuItem("/maintenance/plans/create", "Plan Oluştur", "plus-circle"),
            MenuItem("/maintenance/reports", "Raporlar", "bar-chart-3"),
        ),
    ),
)

# Always visible, below the scrollable section list.
FOOTER_ITEMS: tuple[MenuItem, ...] = (
    MenuItem("/settings", "Ayarlar", "settings"),
    MenuItem("/help", "Yardım", "help-circle"),
)

# Priority order: a prefix must come before any shorter prefix it extends.
SECTION_PREFIXES: tuple[tuple[str, str], ...] = (
    ("/admin", "admin"),
    ("/yonetim", "yonetim"),
    ("/sales", "sales"),
    ("/planning", "planning"),
    ("/production-tracking", "production-tracking"),
    ("/production", "production"),
    ("/weaving", "weaving"),
    ("/product-development", "product-development"),
    ("/raw-quality", "raw-quality"),
    ("/yarn-spinning", "yarn-spinning"),
    ("/samples", "samples"),
    ("/laboratory", "laboratory"),
    ("/fabric-samples/kartela", "kartela"),
    ("/kartela", "kartela"),
    ("/inventory", "inventory"),
    ("/quality", "quality"),
    ("/dye-recipes", "dye-recipes"),
    ("/yarn-warehouse", "yarn-warehouse"),
    ("/warehouse", "warehouse"),
    ("/shipment", "shipment"),
    ("/maintenance", "maintenance"),
)


# ═══════════════════════════════════════════════════════════════
# Operations
# ═══════════════════════════════════════════════════════════════

def visible_sections(
    flags: CapabilityFlags,
    catalog: Sequence[MenuSection] = NAVIGATION_CATALOG,
) -> list[MenuSection]:
    return [section for section in catalog if section.is_visible(flags)]


def resolve_active_section(
    path: Optional[str],
    prefixes: Sequence[tuple[str, str]] = SECTION_PREFIXES,
) -> Optional[str]:
    """Key of the first prefix ``path`` starts with, or None."""
    if not path:
        return None
    for prefix, key in prefixes:
        if path.startswith(prefix):
            return key
    return None


def resolve_active_item(path: Optional[str], items: Iterable[MenuItem]) -> Optional[MenuItem]:
    for item in items:
        if item.href == path:
            return item
    return None


def find_section(key: Optional[str], catalog: Sequence[MenuSection] = NAVIGATION_CATALOG) -> Optional[MenuSection]:
    if not key:
        return None
    for section in catalog:
        if section.key == key:
            return section
    return None


# ═══════════════════════════════════════════════════════════════
# Configuration checks
# ═══════════════════════════════════════════════════════════════

def find_shadowed_prefixes(
    prefixes: Sequence[tuple[str, str]] = SECTION_PREFIXES,
) -> list[tuple[str, str]]:
    """Return (earlier, later) prefix pairs where ``later`` can never match.

    A later prefix is shadowed when an earlier one is a string prefix of it
    and maps to a different key.
    """
    shadowed = []
    for i, (later, later_key) in enumerate(prefixes):
        for earlier, earlier_key in prefixes[:i]:
            if later.startswith(earlier) and earlier_key != later_key:
                shadowed.append((earlier, later))
    return shadowed


def duplicate_hrefs(catalog: Sequence[MenuSection] = NAVIGATION_CATALOG) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for section in catalog:
        for item in section.items:
            if item.href in seen:
                duplicates.append(item.href)
            seen.add(item.href)
    for item in FOOTER_ITEMS:
        if item.href in seen:
            duplicates.append(item.href)
        seen.add(item.href)
    return duplicates


def check_catalog(app=None) -> bool:
    """Log configuration defects in the catalog. Returns True when clean."""
    log = app.logger if app is not None else logger
    shadowed = find_shadowed_prefixes()
    duplicates = duplicate_hrefs()
    for earlier, later in shadowed:
        log.warning("Navigation prefix %r is shadowed by %r", later, earlier)
    for href in duplicates:
        log.warning("Navigation href %r is declared more than once", href)
    return not shadowed and not duplicates


def catalog_to_dict(catalog: Sequence[MenuSection] = NAVIGATION_CATALOG) -> list[dict]:
    """Unfiltered catalog, for admin tooling."""
    return [
        {
            "key": section.key,
            "title": section.title,
            "icon": section.icon,
            "color": section.color,
            "default_open": section.default_open,
            "items": [{"href": i.href, "label": i.label, "icon": i.icon} for i in section.items],
        }
        for section in catalog
    ]
