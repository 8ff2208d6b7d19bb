"""
Optional Claude rewrite of the rule-based recommendations.

Claude API key must be defined in a .env file in the backend root:

ANTHROPIC_API_KEY=your_real_key_here

Without a key, or on any API/network/JSON failure, enhance_recommendations()
returns None and the analyzer keeps the rule output. Never raises.
"""

import json
import logging
import os
import random
import time

from anthropic import Anthropic

import config  # noqa: F401  loads .env before the settings below are read
from models import AnalysisPayload, Recommendation
from recommendations import make_recommendation

logger = logging.getLogger(__name__)

MODEL_CANDIDATES = [
    os.getenv("CLAUDE_MODEL", "").strip(),
    "claude-3-5-sonnet-latest",
    "claude-3-haiku-20240307",
]
MODEL_CANDIDATES = [m for m in MODEL_CANDIDATES if m]
TEMPERATURE = 0.2
MAX_TOKENS = int(os.getenv("CLAUDE_MAX_TOKENS", "1600"))
MAX_RETRIES = int(os.getenv("CLAUDE_MAX_RETRIES", "3"))
RETRY_BASE_SECONDS = float(os.getenv("CLAUDE_RETRY_BASE_SECONDS", "1.0"))
MAX_LLM_ITEMS = 8

SYSTEM_MESSAGE = """You are a senior web content and SEO reviewer.
Return ONLY a valid raw JSON array that matches the schema exactly.
Every recommendation must be specific to the page scores and metrics provided.
Do not include markdown, code fences, or text outside JSON."""

USER_TEMPLATE = """Page URL: {url}
Final score: {final_score}/100

Module scores:
{module_scores}

Key metrics:
{metrics}

Current recommendations:
{recommendations}

Tasks:
1. Rewrite or add up to {max_items} recommendations that would raise the score most.
2. Reuse an existing id when you improve that recommendation; otherwise use a short kebab-case id.
3. impact is an integer 1-10, effort is one of Low, Medium, High.
4. example_code is a concrete snippet or sentence the site owner can apply.
5. Do not use unescaped double quotes inside any JSON string value.

Return ONLY this JSON structure:
[
  {{"id": "string", "summary": "string", "impact": 1, "effort": "Low", "example_code": "string"}}
]"""

_METRIC_KEYS = {
    "performance": ("lcp_seconds", "cls", "total_page_weight_mb", "blocking_scripts_count"),
    "accessibility": ("missing_alt_count", "html_lang_present", "invalid_role_count"),
    "seo": ("title_length", "meta_description_length", "internal_links_count", "robots_indexable"),
    "content": ("word_count", "flesch_score", "avg_sentence_length", "days_since_published"),
    "ux": ("navigation_score", "mobile_usability_score", "intrusiveness_score"),
    "monetization": ("ads_total", "affiliate_links_count"),
    "trust": ("originality_matches", "contact_methods_count"),
    "security": ("https", "csp_present", "hsts_present"),
}


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------


def _escape_inner_quotes(value: str) -> str:
    """
    Escape likely unescaped quotes inside JSON strings.
    Keeps closing quotes intact by checking the next non-space token.
    """
    out: list[str] = []
    in_string = False
    escaped = False
    length = len(value)
    i = 0

    while i < length:
        ch = value[i]
        if escaped:
            out.append(ch)
            escaped = False
        elif ch == "\\":
            out.append(ch)
            escaped = True
        elif ch == '"':
            if not in_string:
                in_string = True
                out.append(ch)
            else:
                j = i + 1
                while j < length and value[j].isspace():
                    j += 1
                next_char = value[j] if j < length else ""
                if next_char in {":", ",", "}", "]"}:
                    in_string = False
                    out.append(ch)
                else:
                    out.append('\\"')
        else:
            out.append(ch)
        i += 1

    return "".join(out)


def _extract_json_array(text: str) -> list | None:
    if not text:
        return None

    text = text.strip()
    if text.startswith("```"):
        text = text.replace("```json", "").replace("```", "").strip()

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or end < start:
        return None

    json_str = text[start : end + 1]
    json_str = json_str.replace("“", '"').replace("”", '"').replace("‘", "'").replace("’", "'")

    for candidate in (json_str, _escape_inner_quotes(json_str)):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        return parsed if isinstance(parsed, list) else None

    logger.warning("LLM response was not a parseable JSON array")
    return None


# ---------------------------------------------------------------------------
# Claude call
# ---------------------------------------------------------------------------


def _extract_response_text(response: object) -> str:
    content = ""
    for block in getattr(response, "content", []) or []:
        text = getattr(block, "text", None)
        if text:
            content += text
    return content.strip()


def _is_retryable_error(exc: Exception) -> bool:
    msg = str(exc).lower()
    retry_tokens = (
        "overloaded",
        "529",
        "rate limit",
        "rate_limit",
        "429",
        "500",
        "502",
        "503",
        "504",
        "timeout",
    )
    return any(token in msg for token in retry_tokens)


def _retry_delay(attempt: int) -> float:
    return RETRY_BASE_SECONDS * (2**attempt) + random.uniform(0, 0.35)


def _call_claude(client: Anthropic, user_message: str) -> str:
    last_error: Exception | None = None

    for model in MODEL_CANDIDATES:
        for attempt in range(MAX_RETRIES):
            try:
                response = client.messages.create(
                    model=model,
                    max_tokens=MAX_TOKENS,
                    system=SYSTEM_MESSAGE,
                    messages=[{"role": "user", "content": user_message}],
                    temperature=TEMPERATURE,
                )
                content = _extract_response_text(response)
                if getattr(response, "stop_reason", None) == "max_tokens":
                    logger.warning("Claude output hit max_tokens for model=%s", model)
                if content:
                    return content

                last_error = RuntimeError("Empty Claude response content.")
                if attempt < MAX_RETRIES - 1:
                    delay = _retry_delay(attempt)
                    logger.info("Claude retry: model=%s empty content, wait=%.2fs", model, delay)
                    time.sleep(delay)
                    continue
            except Exception as e:
                last_error = e
                if _is_retryable_error(e) and attempt < MAX_RETRIES - 1:
                    delay = _retry_delay(attempt)
                    logger.info("Claude retry: model=%s attempt=%d wait=%.2fs", model, attempt + 1, delay)
                    time.sleep(delay)
                    continue
            break

    if last_error is not None:
        raise last_error
    return ""


# ---------------------------------------------------------------------------
# Prompt and normalization
# ---------------------------------------------------------------------------


def build_user_message(payload: AnalysisPayload) -> str:
    modules = payload.get("modules") or {}
    module_scores = "\n".join(f"- {name}: {result.get('score', 0)}/100" for name, result in modules.items())

    metric_lines = []
    for name, keys in _METRIC_KEYS.items():
        metrics = (modules.get(name) or {}).get("metrics") or {}
        values = [f"{key}={metrics[key]}" for key in keys if key in metrics]
        if values:
            metric_lines.append(f"- {name}: " + ", ".join(values))

    recs = "\n".join(
        f"- [{r['id']}] {r['summary']} (impact {r['impact']}, effort {r['effort']})"
        for r in payload.get("recommendations") or []
    )

    return USER_TEMPLATE.format(
        url=payload.get("url", ""),
        final_score=payload.get("final_score", 0),
        module_scores=module_scores or "Not provided",
        metrics="\n".join(metric_lines) or "Not provided",
        recommendations=recs or "None",
        max_items=MAX_LLM_ITEMS,
    )


def normalize_items(raw: list) -> list[Recommendation]:
    """Valid items only, impact clamped to 1..10, example_code mapped to example_text."""
    items: list[Recommendation] = []
    for entry in raw[:MAX_LLM_ITEMS]:
        if not isinstance(entry, dict):
            continue
        rec_id = str(entry.get("id") or "").strip()
        summary = str(entry.get("summary") or "").strip()
        if not rec_id or not summary:
            continue
        example = entry.get("example_code") or entry.get("example_text") or ""
        rec = make_recommendation(rec_id, summary, entry.get("impact"), entry.get("effort"), str(example))
        rec["impact"] = max(1, rec["impact"])
        items.append(rec)
    return items


def enhance_recommendations(payload: AnalysisPayload) -> list[Recommendation] | None:
    """
    Ask Claude for sharper recommendations for an analyzed page.
    Returns None when disabled or on any failure. Never raises.
    """
    try:
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            logger.info("LLM enhancement skipped: ANTHROPIC_API_KEY not set")
            return None

        client = Anthropic(api_key=api_key)
        content = _call_claude(client, build_user_message(payload))
        if not content:
            return None

        parsed = _extract_json_array(content)
        if parsed is None:
            return None

        items = normalize_items(parsed)
        logger.info("LLM returned %d recommendations for %s", len(items), payload.get("url"))
        return items or None
    except Exception as e:
        logger.warning("LLM enhancement failed: %s", e)
        return None
