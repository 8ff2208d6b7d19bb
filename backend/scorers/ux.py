"""UX: navigation, typography, mobile, layout stability, interaction, intrusiveness (raw max 105)."""

import re
from urllib.parse import urlparse

from models import ModuleResult, SignalBundle, UxMetrics
from scorers.common import inline_px, is_above_fold, parse_inline_decl
from scorers.normalize import rescale, round_half_up

MAX_RAW = 105
DEFAULT_FONT_SIZE_PX = 16
DEFAULT_LINE_HEIGHT = 1.5
DEFAULT_TARGET_HEIGHT_PX = 40

_RESPONSIVE_IMG = re.compile(r"max-width\s*:\s*100%|width\s*:\s*(100%|auto)")
_SEARCH = re.compile(r"search", re.IGNORECASE)


def _navigation(soup, bundle: SignalBundle) -> dict:
    nav_present = soup.find("nav") is not None
    nav_links = len(soup.select("nav a[href]"))
    if 4 <= nav_links <= 8:
        item_points = 8
    elif 2 <= nav_links <= 3:
        item_points = 5
    elif 9 <= nav_links <= 12:
        item_points = 4
    elif nav_links < 2:
        item_points = 2
    else:
        item_points = 0

    parsed = urlparse(bundle.url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    home_targets = {"/", "./", "../", origin, origin + "/"}
    home_link = any((a.get("href") or "").strip() in home_targets for a in soup.find_all("a"))

    search_input = bool(
        soup.select('input[type="search"], input[name*="search"], input[placeholder*="search" i], input[id*="search"]')
    )
    search_button = any(_SEARCH.search(b.get_text()) for b in soup.select('button[type="submit"]'))
    has_search = search_input or search_button

    category_links = len(soup.select('a[href*="category"], a[href*="tag"], a[href*="archive"]'))
    has_categories = category_links >= 3

    points = {
        "navigation_presence_points": 5 if nav_present else 0,
        "navigation_item_count_points": item_points,
        "navigation_home_link_points": 4 if home_link else 0,
        "search_points": 5 if has_search else 0,
        "category_points": 3 if has_categories else 0,
    }
    return {
        "navigation_score": sum(points.values()),
        **points,
        "has_search_feature": has_search,
        "has_categories_or_tags": has_categories,
        "nav_link_count": nav_links,
    }


def _typography(soup) -> dict:
    body = soup.find("body")
    style = (body.get("style") or "") if body else ""
    font_size = inline_px(style, "font-size")
    font_size = font_size if font_size is not None else DEFAULT_FONT_SIZE_PX
    if font_size >= 16:
        font_points = 10
    elif font_size >= 14:
        font_points = 7
    elif font_size >= 12:
        font_points = 4
    else:
        font_points = 0

    line_height = DEFAULT_LINE_HEIGHT
    declared = parse_inline_decl(style, "line-height")
    if declared:
        m = re.match(r"\d+(?:\.\d+)?", declared)
        if m:
            line_height = float(m.group(0))
    line_height_points = 5 if line_height >= 1.4 else 2

    # Contrast needs computed styles; without them every page gets full marks.
    contrast_points = 5

    return {
        "typography_score": font_points + line_height_points + contrast_points,
        "font_size_points": font_points,
        "line_height_points": line_height_points,
        "text_contrast_points": contrast_points,
        "base_font_size": font_size,
        "line_height": round(line_height, 2),
    }


def _mobile(soup, bundle: SignalBundle) -> dict:
    viewport = soup.find("meta", attrs={"name": "viewport"}) is not None
    images = bundle.images
    responsive = sum(1 for img in images if _RESPONSIVE_IMG.search(img.style))
    ratio = responsive / len(images) * 100 if images else 100
    responsive_points = 5 if ratio >= 90 else 3 if ratio >= 60 else 1
    no_scroll_points = 5
    viewport_points = 10 if viewport else 0
    return {
        "mobile_usability_score": viewport_points + responsive_points + no_scroll_points,
        "viewport_points": viewport_points,
        "responsive_img_points": responsive_points,
        "no_horizontal_scroll_points": no_scroll_points,
        "responsive_image_ratio": round_half_up(ratio),
        "mobile_responsive": viewport,
    }


def _layout(soup, bundle: SignalBundle) -> dict:
    images = bundle.images
    with_dims = sum(1 for img in images if img.has_dimensions)
    ratio = with_dims / len(images) * 100 if images else 100
    if ratio >= 90:
        dim_points = 10
    elif ratio >= 70:
        dim_points = 7
    elif ratio >= 40:
        dim_points = 4
    else:
        dim_points = 0
    loaders = soup.select('[class*="skeleton"], [class*="loader"], [class*="placeholder"]')
    shift_points = 5 if not loaders else 3
    return {
        "layout_stability_score": dim_points + shift_points,
        "image_dimensions_points": dim_points,
        "shift_prone_points": shift_points,
        "images_with_dimensions_ratio": round_half_up(ratio),
        "images_missing_dimensions": len(images) - with_dims,
        "images_lazy_fraction": round(sum(1 for img in images if img.is_lazy) / len(images), 2) if images else 0.0,
    }


def _interaction(soup) -> dict:
    targets = soup.select('button, a, input[type="button"], input[type="submit"]')
    large = 0
    for el in targets:
        height = inline_px(el.get("style") or "", "height")
        if (height if height is not None else DEFAULT_TARGET_HEIGHT_PX) >= 32:
            large += 1
    ratio = large / len(targets) * 100 if targets else 100
    tap_points = 7 if ratio >= 90 else 5 if ratio >= 60 else 2

    without_href = sum(1 for a in soup.find_all("a") if not (a.get("href") or "").strip())
    href_points = 4 if without_href == 0 else 2 if without_href <= 3 else 0

    buttons = soup.find_all("button")
    typed = sum(1 for b in buttons if b.has_attr("type"))
    type_points = 4 if not buttons or typed == len(buttons) else 2

    return {
        "interaction_score": tap_points + href_points + type_points,
        "tap_target_points": tap_points,
        "valid_href_points": href_points,
        "buttons_type_points": type_points,
        "large_tap_targets_ratio": round_half_up(ratio),
        "links_without_href": without_href,
    }


def _intrusiveness(soup) -> dict:
    ad_elements = len(
        soup.select('[class*="ad"], [class*="banner"], [class*="advert"], [id*="ad"], [id*="banner"]')
    )
    count_points = 5 if ad_elements <= 1 else 3 if ad_elements <= 4 else 0
    above_fold = sum(1 for el in soup.select('[class*="ad"], [class*="banner"]') if is_above_fold(el))
    fold_points = 5 if above_fold == 0 else 1
    return {
        "intrusiveness_score": count_points + fold_points,
        "ad_count_points": count_points,
        "ads_fold_points": fold_points,
        "ad_elements_count": ad_elements,
        "ads_above_fold": above_fold,
    }


def score_ux(bundle: SignalBundle) -> ModuleResult:
    soup = bundle.document
    sections = [
        _navigation(soup, bundle),
        _typography(soup),
        _mobile(soup, bundle),
        _layout(soup, bundle),
        _interaction(soup),
        _intrusiveness(soup),
    ]
    raw = sum(
        s[key]
        for s, key in zip(
            sections,
            (
                "navigation_score",
                "typography_score",
                "mobile_usability_score",
                "layout_stability_score",
                "interaction_score",
                "intrusiveness_score",
            ),
        )
    )
    metrics: UxMetrics = {"raw_score": raw}
    for section in sections:
        metrics.update(section)
    return {"score": rescale(raw, MAX_RAW), "metrics": dict(metrics)}
