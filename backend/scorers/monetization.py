"""Monetization: ads, affiliate, product, subscription, CTA and hygiene (max 100)."""

import re

from models import ModuleResult, MonetizationMetrics, SignalBundle
from scorers.common import (
    ad_script_count,
    ads_total,
    analytics_present,
    deceptive_pattern_count,
    inline_px,
    is_above_fold,
    overlay_count,
    sticky_ad_count,
    text_of,
)
from scorers.normalize import clamp_score, round_half_up

DEFAULT_CTA_HEIGHT_PX = 36

_AFFILIATE_SELECTOR = 'a[href*="ref="], a[href*="aff"], a[href*="tag="], a[href*="affiliate"], a[href*="amzn.to"]'
_DISCLOSURE = re.compile(r"affiliate|commission|may earn|disclosure|paid link", re.IGNORECASE)
_VAGUE_ANCHOR = re.compile(r"click here|here|link", re.IGNORECASE)
_BUY = re.compile(r"buy|shop|order|cart|purchase|add to cart", re.IGNORECASE)
_PRICE = re.compile(r"\$\d+|\d+\.\d{2}|price", re.IGNORECASE)
_TRUST_TERMS = re.compile(r"refund|money-back|guarantee|secure|ssl|verified|trusted|safe checkout", re.IGNORECASE)
_INCENTIVE = re.compile(r"newsletter|free|updates|weekly|subscribe|exclusive|bonus|guide|ebook", re.IGNORECASE)
_CTA = re.compile(r"subscribe|download|buy|learn more|sign-up|get started|try|join|register", re.IGNORECASE)
_BACKGROUND = re.compile(r"background|bg-")


def _ads(soup, bundle: SignalBundle) -> dict:
    total = ads_total(bundle)
    if total <= 3:
        density = 10
    elif total <= 6:
        density = 6
    elif total <= 10:
        density = 3
    else:
        density = 0

    above_fold = sum(
        1 for el in soup.select('[class*="ad"], [class*="banner"], [class*="advert"]') if is_above_fold(el)
    )
    placement = 10 if above_fold == 0 else 6 if above_fold <= 2 else 2

    lazy = len(soup.select('[class*="ad"][loading="lazy"], [class*="banner"][loading="lazy"]'))
    blocking = len(
        soup.select('head script[src*="ad"], head script[src*="doubleclick"], head script[src*="googlesyndication"]')
    )
    if lazy and not blocking:
        loading = 10
    elif lazy:
        loading = 6
    elif not blocking and total > 0:
        loading = 5
    elif blocking:
        loading = 0
    else:
        loading = 10

    return {
        "ads_score": density + placement + loading,
        "ad_density_points": density,
        "ad_placement_points": placement,
        "ad_loading_points": loading,
        "ads_total": total,
        "ads_above_fold_count": above_fold,
        "lazy_ads_count": lazy,
        "blocking_ad_scripts": blocking,
    }


def _affiliate(soup, text: str) -> dict:
    links = soup.select(_AFFILIATE_SELECTOR)
    count = len(links)
    presence = 5 if 1 <= count <= 20 else 2 if count == 0 else 1
    disclosure = bool(_DISCLOSURE.search(text))

    descriptive = 0
    for link in links:
        anchor = text_of(link).lower()
        if len(anchor) > 10 and not _VAGUE_ANCHOR.search(anchor):
            descriptive += 1
    ratio = descriptive / count * 100 if count else 100
    if ratio >= 80:
        relevancy = 10
    elif ratio >= 50:
        relevancy = 7
    elif ratio >= 20:
        relevancy = 3
    else:
        relevancy = 1

    disclosure_points = 5 if disclosure else 0
    return {
        "affiliate_score": presence + disclosure_points + relevancy,
        "affiliate_presence_points": presence,
        "affiliate_disclosure_points": disclosure_points,
        "affiliate_relevancy_points": relevancy,
        "affiliate_links_count": count,
        "affiliate_relevancy_ratio": round_half_up(ratio),
        "has_disclosure": disclosure,
    }


def _product(soup, text: str) -> dict:
    buy = sum(1 for el in soup.find_all(["button", "a"]) if _BUY.search(el.get_text()))
    buy_points = 8 if 1 <= buy <= 10 else 2 if buy == 0 else 4

    cards = len(soup.select('[class*="product"], [class*="item-card"], [class*="shop-card"]'))
    product_images = bool(soup.select('[class*="product"] img, [class*="item"] img'))
    presentation = 6 if cards or (product_images and _PRICE.search(text)) else 2

    trust_terms = {m.lower() for m in _TRUST_TERMS.findall(text)}
    trust = 6 if len(trust_terms) >= 2 else 3 if trust_terms else 0

    return {
        "product_score": buy_points + presentation + trust,
        "buy_button_points": buy_points,
        "product_presentation_points": presentation,
        "customer_trust_points": trust,
        "buy_buttons_count": buy,
        "product_cards_count": cards,
    }


def _subscription(soup, text: str) -> dict:
    email_inputs = len(soup.select('input[type="email"], input[name*="email"]'))
    context = ""
    for form in soup.find_all("form"):
        if form.select_one('input[type="email"]') is not None:
            parent = form.parent if form.parent is not None else form
            context += " " + parent.get_text(" ")
    incentive = bool(_INCENTIVE.search(context.strip() or text))
    optin = 5 if email_inputs else 0
    if email_inputs and incentive:
        clarity = 5
    elif email_inputs:
        clarity = 3
    else:
        clarity = 0
    return {
        "subscription_score": optin + clarity,
        "email_optin_points": optin,
        "incentive_clarity_points": clarity,
        "email_inputs_count": email_inputs,
    }


def _cta(soup) -> dict:
    ctas = [el for el in soup.find_all(["button", "a"]) if _CTA.search(el.get_text())]
    count = len(ctas)
    if 2 <= count <= 10:
        quantity = 5
    elif count == 1:
        quantity = 3
    elif count > 10:
        quantity = 1
    else:
        quantity = 0

    visible = 0
    for el in ctas:
        style = el.get("style") or ""
        classes = " ".join(el.get("class") or [])
        height = inline_px(style, "height")
        if _BACKGROUND.search(style + " " + classes) and (height if height is not None else DEFAULT_CTA_HEIGHT_PX) >= 32:
            visible += 1
    ratio = visible / count * 100 if count else 0
    visibility = 5 if ratio >= 80 else 3 if ratio >= 50 else 1

    return {
        "cta_score": quantity + visibility,
        "cta_quantity_points": quantity,
        "cta_visibility_points": visibility,
        "cta_count": count,
        "visible_ctas_ratio": round_half_up(ratio),
    }


def _hygiene(soup, bundle: SignalBundle) -> dict:
    popups = len(soup.select('[class*="modal"], [class*="popup"], [id*="modal"], [id*="popup"]'))
    overlays = overlay_count(bundle)
    if popups == 0 and overlays == 0:
        popup_points = 5
    elif popups <= 2 or overlays <= 1:
        popup_points = 3
    elif overlays > 2:
        popup_points = 1
    else:
        popup_points = 0

    deceptive = deceptive_pattern_count(bundle)
    deceptive_points = 5 if deceptive == 0 else 2 if deceptive <= 2 else 0

    return {
        "monetization_hygiene_score": popup_points + deceptive_points,
        "popup_points": popup_points,
        "deceptive_points": deceptive_points,
        "popup_count": popups,
        "deceptive_patterns_count": deceptive,
        "overlay_count": overlays,
    }


def score_monetization(bundle: SignalBundle) -> ModuleResult:
    soup = bundle.document
    text = bundle.body_text

    sections = {
        "ads_score": _ads(soup, bundle),
        "affiliate_score": _affiliate(soup, text),
        "product_score": _product(soup, text),
        "subscription_score": _subscription(soup, text),
        "cta_score": _cta(soup),
        "monetization_hygiene_score": _hygiene(soup, bundle),
    }
    raw = sum(section[key] for key, section in sections.items())

    metrics: MonetizationMetrics = {}
    for section in sections.values():
        metrics.update(section)
    metrics["ad_iframe_count"] = len(soup.find_all("iframe"))
    metrics["ad_script_count"] = ad_script_count(bundle)
    metrics["sticky_ads_count"] = sticky_ad_count(bundle)
    metrics["analytics_present"] = analytics_present(bundle)
    return {"score": clamp_score(raw), "metrics": dict(metrics)}
