"""DOM helpers shared across scorers (inline styles, colors, ad heuristics)."""

import re

from bs4 import Tag

from models import SignalBundle

AD_ELEMENT_SELECTOR = '[id*="ad"], [class*="ad"], [id*="banner"], [class*="banner"]'
OVERLAY_SELECTOR = '[id*="popup"], [class*="popup"], [id*="modal"], [class*="modal"]'
ABOVE_FOLD_PX = 600
DEFAULT_TOP_PX = 1000

_HEX3 = re.compile(r"^#[0-9a-f]{3}$", re.IGNORECASE)
_HEX6 = re.compile(r"^#[0-9a-f]{6}$", re.IGNORECASE)
_AD_SCRIPT = re.compile(r"ads|doubleclick|googlesyndication|amazon-ads|facebook|twitter|instagram|linkedin", re.IGNORECASE)
_ANALYTICS_SRC = re.compile(
    r"google-analytics|gtag|googletagmanager|plausible|matomo|segment|mixpanel|heap|fullstory|"
    r"clarity|hotjar|pintrk|fbq|adobe|omni|tagmanager|analytics\.js",
    re.IGNORECASE,
)
_ANALYTICS_INLINE = re.compile(
    r"gtag\(|ga\(|dataLayer\.|plausible\(|_paq\.push|fbq\(|clarity\(|hj\.|mixpanel\.|heap\.track",
    re.IGNORECASE,
)
_STICKY = re.compile(r"position\s*:\s*(fixed|sticky)", re.IGNORECASE)
_STICKY_TEXT = re.compile(r"ad|promo|sponsor", re.IGNORECASE)
_DECEPTIVE_CLASS = re.compile(r"ad|banner", re.IGNORECASE)
_DECEPTIVE_TEXT = re.compile(r"download|update|install|play|watch now", re.IGNORECASE)


def parse_inline_decl(style: str, prop: str) -> str | None:
    """Value of `prop` in an inline style; matches whole property names only."""
    if not style:
        return None
    m = re.search(rf"(?:^|;)\s*{re.escape(prop)}\s*:\s*([^;]+)", style, re.IGNORECASE)
    return m.group(1).strip() if m else None


def inline_px(style: str, prop: str) -> float | None:
    value = parse_inline_decl(style, prop)
    if not value:
        return None
    m = re.match(r"(\d+(?:\.\d+)?)px", value)
    return float(m.group(1)) if m else None


def hex_to_rgb(color: str | None) -> tuple[int, int, int] | None:
    if not color:
        return None
    color = color.strip()
    if _HEX3.match(color):
        return tuple(int(c * 2, 16) for c in color[1:4])
    if _HEX6.match(color):
        return tuple(int(color[i : i + 2], 16) for i in (1, 3, 5))
    return None


def _relative_luminance(rgb: tuple[int, int, int]) -> float:
    channels = []
    for v in rgb:
        v = v / 255
        channels.append(v / 12.92 if v <= 0.03928 else ((v + 0.055) / 1.055) ** 2.4)
    return 0.2126 * channels[0] + 0.7152 * channels[1] + 0.0722 * channels[2]


def contrast_ratio(fg: tuple[int, int, int], bg: tuple[int, int, int]) -> float:
    l1, l2 = _relative_luminance(fg), _relative_luminance(bg)
    return (max(l1, l2) + 0.05) / (min(l1, l2) + 0.05)


def text_of(tag: Tag) -> str:
    return " ".join(tag.get_text(" ").split())


def class_string(tag: Tag) -> str:
    classes = tag.get("class") or []
    return " ".join(classes) if isinstance(classes, list) else str(classes)


def is_above_fold(tag: Tag) -> bool:
    top = inline_px(tag.get("style") or "", "top")
    return (top if top is not None else DEFAULT_TOP_PX) < ABOVE_FOLD_PX


def ad_element_count(bundle: SignalBundle) -> int:
    return len(bundle.document.select(AD_ELEMENT_SELECTOR))


def ads_total(bundle: SignalBundle) -> int:
    """Ad-like elements plus iframes (every iframe is assumed to be an ad slot)."""
    return ad_element_count(bundle) + len(bundle.document.find_all("iframe"))


def overlay_count(bundle: SignalBundle) -> int:
    return len(bundle.document.select(OVERLAY_SELECTOR))


def ad_script_count(bundle: SignalBundle) -> int:
    return sum(1 for s in bundle.document.select("script[src]") if _AD_SCRIPT.search(s.get("src") or ""))


def sticky_ad_count(bundle: SignalBundle) -> int:
    count = 0
    for tag in bundle.document.select("[style]"):
        if _STICKY.search(tag.get("style") or "") and _STICKY_TEXT.search(tag.get_text(" ")):
            count += 1
    return count


def analytics_present(bundle: SignalBundle) -> bool:
    for script in bundle.document.find_all("script"):
        if _ANALYTICS_SRC.search(script.get("src") or "") or _ANALYTICS_INLINE.search(script.string or ""):
            return True
    return False


def deceptive_pattern_count(bundle: SignalBundle) -> int:
    """Ad-styled buttons or links whose text imitates a system action."""
    count = 0
    for tag in bundle.document.find_all(["button", "a"]):
        if _DECEPTIVE_CLASS.search(class_string(tag)) and _DECEPTIVE_TEXT.search(tag.get_text(" ")):
            count += 1
    return count


def meta_content(bundle: SignalBundle, **attrs) -> str:
    tag = bundle.document.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return ""
