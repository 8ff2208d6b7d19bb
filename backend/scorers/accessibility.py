"""Accessibility: seven sub-checks on a 110 point budget, rescaled to 100."""

import re

from models import AccessibilityMetrics, ModuleResult, SignalBundle
from scorers.common import contrast_ratio, hex_to_rgb, parse_inline_decl, text_of
from scorers.normalize import clamp_score, ratio_points, rescale
from wordlists import VALID_ARIA_ROLES

MAX_RAW = 110
MAX_CONTRAST_SAMPLES = 200
TEXT_TAGS = ["p", "span", "li", "a", "h1", "h2", "h3", "h4", "h5", "h6"]
LANDMARKS = ("main", "header", "footer", "nav")
SEMANTIC_TAGS = ("header", "main", "footer", "nav", "article", "section", "aside")

_DECORATIVE_CLASS = re.compile(r"icon|decor|badge|avatar", re.IGNORECASE)
_SVG_ROLE = re.compile(r"img|presentation|graphics-document", re.IGNORECASE)
_VAGUE_LINK = re.compile(r"click here|here|read more|more", re.IGNORECASE)
_BAD_FONT = re.compile(r"comic|papyrus|cursive|fantasy", re.IGNORECASE)
_NAMED_ROLE = re.compile(r"button|tab|dialog")
_ZOOM_DISABLED = re.compile(r"user-scalable=no|maximum-scale=1")


def _semantic_structure(soup, bundle: SignalBundle) -> int:
    levels = [level for level in range(1, 7) if bundle.headings(level)]
    issues = 0 if bundle.headings(1) else 2
    issues += sum(1 for a, b in zip(levels, levels[1:]) if b - a > 1)
    heading_points = max(0, 8 - issues)

    landmark_points = min(5, sum(1 for tag in LANDMARKS if soup.find(tag) is not None))

    semantic = sum(len(soup.find_all(tag)) for tag in SEMANTIC_TAGS)
    ratio = semantic / max(1, len(soup.find_all("div")))
    if ratio >= 0.5:
        div_points = 5
    elif ratio >= 0.3:
        div_points = 3
    elif ratio >= 0.15:
        div_points = 2
    else:
        div_points = 1

    empty_lists = sum(1 for lst in soup.find_all(["ul", "ol"]) if not lst.find_all("li", recursive=False))
    list_points = max(0, 3 - empty_lists)

    tables = sum(1 for t in soup.find_all("table") if t.find(["th", "caption", "thead"]) is not None)
    table_points = min(4, tables)

    return heading_points + landmark_points + div_points + list_points + table_points


def _text_contrast(soup) -> tuple[int, int]:
    """(points, contrast samples)."""
    samples = passed = 0
    font_samples = font_ok = 0
    lh_samples = lh_ok = 0
    bad_font = False

    for el in soup.find_all(TEXT_TAGS):
        style = el.get("style") or ""
        if not style:
            continue

        if samples < MAX_CONTRAST_SAMPLES:
            fg = hex_to_rgb(parse_inline_decl(style, "color"))
            bg = hex_to_rgb(parse_inline_decl(style, "background-color"))
            if fg and bg:
                samples += 1
                if contrast_ratio(fg, bg) >= 4.5:
                    passed += 1

        size = parse_inline_decl(style, "font-size")
        if size:
            font_samples += 1
            m = re.search(r"(\d+(?:\.\d+)?)px", size)
            if m and float(m.group(1)) >= 16:
                font_ok += 1

        line_height = parse_inline_decl(style, "line-height")
        if line_height:
            lh_samples += 1
            m = re.match(r"\d+(?:\.\d+)?", line_height)
            if m and float(m.group(0)) >= 1.4:
                lh_ok += 1

        family = parse_inline_decl(style, "font-family")
        if family and _BAD_FONT.search(family):
            bad_font = True

    points = (
        ratio_points(passed, samples, 10, 5)
        + ratio_points(font_ok, font_samples, 4, 2)
        + ratio_points(lh_ok, lh_samples, 3, 2)
        + (1 if bad_font else 3)
    )
    return points, samples


def _images(soup, bundle: SignalBundle) -> tuple[int, int]:
    """(points, images missing alt text)."""
    images = bundle.images
    missing = sum(1 for img in images if not (img.alt or "").strip())
    missing_ratio = missing / len(images) if images else 0
    alt_points = clamp_score((1 - min(1, missing_ratio)) * 7)

    decorative = [img for img in images if _DECORATIVE_CLASS.search(img.css_class)]
    decorative_ok = sum(1 for img in decorative if img.alt == "")
    decorative_points = ratio_points(decorative_ok, len(decorative), 3, 2)

    long_alt = sum(1 for img in images if len(img.alt or "") > 120)
    long_alt_points = 2 if long_alt == 0 else 1 if long_alt == 1 else 0

    svgs = soup.find_all("svg")
    svg_ok = sum(
        1 for svg in svgs if svg.find("title") is not None or _SVG_ROLE.search(svg.get("role") or "")
    )
    svg_points = ratio_points(svg_ok, len(svgs), 3, 2)

    return alt_points + decorative_points + long_alt_points + svg_points, missing


def _media_interactive(soup) -> int:
    fields = soup.find_all(["input", "textarea", "select"])
    labeled_ids = {label.get("for") for label in soup.find_all("label") if label.get("for")}
    labeled = sum(1 for f in fields if f.get("id") and f.get("id") in labeled_ids)
    label_points = ratio_points(labeled, len(fields), 6, 3)

    buttons = soup.select('button, [role="button"], a.button')
    named = sum(1 for b in buttons if text_of(b) or (b.get("aria-label") or ""))
    button_points = ratio_points(named, len(buttons), 4, 2)

    videos = soup.find_all("video")
    good_videos = 0
    for video in videos:
        autoplay_with_sound = video.has_attr("autoplay") and not video.has_attr("muted")
        captions = video.select_one('track[kind="captions"]') is not None
        if not autoplay_with_sound and video.has_attr("controls") and captions:
            good_videos += 1
    media_points = min(3, good_videos) if videos else 1

    links = soup.select("a[href]")
    meaningful = 0
    for link in links:
        label = text_of(link).lower()
        if label and not _VAGUE_LINK.search(label):
            meaningful += 1
    link_points = ratio_points(meaningful, len(links), 2, 1)

    return label_points + button_points + media_points + link_points


def _keyboard_focus(soup) -> int:
    positive_tabindex = 0
    for el in soup.select("[tabindex]"):
        try:
            if int(el.get("tabindex")) > 0:
                positive_tabindex += 1
        except (TypeError, ValueError):
            continue
    tab_points = 4 if positive_tabindex == 0 else 2 if positive_tabindex <= 2 else 1

    faux = len(soup.select("div[onclick], span[onclick]"))
    faux_points = 4 if faux == 0 else 2 if faux <= 3 else 1

    styles = " ".join(s.get_text() for s in soup.find_all("style"))
    focus_points = 4 if ":focus" in styles else 2

    skip_link = any(re.search(r"skip", a.get_text(), re.IGNORECASE) for a in soup.select('a[href^="#"]'))
    skip_points = 3 if skip_link else 1

    return tab_points + faux_points + focus_points + skip_points


def _aria(soup) -> tuple[int, int]:
    """(points, invalid roles)."""
    role_elements = soup.select("[role]")
    invalid = sum(
        1
        for el in role_elements
        if (el.get("role") or "").strip().lower() and (el.get("role") or "").strip().lower() not in VALID_ARIA_ROLES
    )
    role_points = max(0, 4 - invalid)

    overuse = 0
    for el in soup.select("div[aria-label], div[aria-labelledby], div[aria-hidden], div[aria-expanded]"):
        if sum(1 for attr in el.attrs if attr.startswith("aria-")) > 2:
            overuse += 1
    overuse_points = 2 if overuse == 0 else 1 if overuse <= 3 else 0

    unnamed = 0
    for el in role_elements:
        if _NAMED_ROLE.search(el.get("role") or "") and not text_of(el) and not el.get("aria-label"):
            unnamed += 1
    label_points = 2 if unnamed == 0 else 1 if unnamed <= 2 else 0

    live_points = 2 if soup.select_one("[aria-live]") is not None else 1

    return role_points + overuse_points + label_points + live_points, invalid


def _mobile(soup) -> int:
    viewport_tag = soup.find("meta", attrs={"name": "viewport"})
    viewport = (viewport_tag.get("content") or "") if viewport_tag else ""
    viewport_points = 3 if viewport else 0
    zoom_points = 0 if _ZOOM_DISABLED.search(viewport) else 3

    targets = soup.select("a[href], button")
    ok = sum(1 for t in targets if len(t.get_text().strip()) >= 4)
    tap_points = ratio_points(ok, len(targets), 4, 2)

    return viewport_points + zoom_points + tap_points


def score_accessibility(bundle: SignalBundle) -> ModuleResult:
    soup = bundle.document

    semantic = _semantic_structure(soup, bundle)
    contrast, contrast_samples = _text_contrast(soup)
    images, missing_alt = _images(soup, bundle)
    interactive = _media_interactive(soup)
    keyboard = _keyboard_focus(soup)
    aria, invalid_roles = _aria(soup)
    mobile = _mobile(soup)

    raw = semantic + contrast + images + interactive + keyboard + aria + mobile
    html_tag = soup.find("html")

    metrics: AccessibilityMetrics = {
        "raw_score": raw,
        "h1_present": bundle.headings(1) > 0,
        "html_lang_present": bool(html_tag and html_tag.get("lang")),
        "missing_alt_count": missing_alt,
        "semantic_structure_points": semantic,
        "text_contrast_points": contrast,
        "image_accessibility_points": images,
        "media_interactive_points": interactive,
        "keyboard_focus_points": keyboard,
        "aria_points": aria,
        "mobile_accessibility_points": mobile,
        "contrast_samples": contrast_samples,
        "invalid_role_count": invalid_roles,
    }
    return {"score": rescale(raw, MAX_RAW), "metrics": dict(metrics)}
