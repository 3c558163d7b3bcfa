import os
import json
import logging
from typing import Any, Dict, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from growthtracker.core.config import (
    OPENROUTER_API_KEY,
    OPENROUTER_MODEL,
    OPENROUTER_REFERER,
    OPENROUTER_TITLE,
    OPENROUTER_URL,
)

logger = logging.getLogger("growth.assessment")

# ---------- Tunables ----------
CONNECT_TIMEOUT = float(os.getenv("OPENROUTER_CONNECT_TIMEOUT", "5"))   # seconds
READ_TIMEOUT    = float(os.getenv("OPENROUTER_READ_TIMEOUT", "45"))     # seconds
TOTAL_RETRIES   = int(os.getenv("OPENROUTER_TOTAL_RETRIES", "2"))
BACKOFF_FACTOR  = float(os.getenv("OPENROUTER_BACKOFF", "0.6"))

FALLBACK_SCORE = 70
DEFAULT_RECOMMENDATIONS = "Continue working on your personal development goals."
DEFAULT_ANALYSIS = "Keep up the good work on your growth journey."
FALLBACK_ANALYSIS = (
    "Based on your responses, there are opportunities for continued growth and development."
)

SYSTEM_PROMPT = (
    "You are a personal development coach and assessment expert. "
    "Provide constructive, actionable feedback based on user responses."
)

_RETRY = Retry(
    total=TOTAL_RETRIES,
    connect=TOTAL_RETRIES,
    read=TOTAL_RETRIES,
    backoff_factor=BACKOFF_FACTOR,
    status_forcelist=(429, 500, 502, 503, 504),
    allowed_methods=("POST",),
    raise_on_status=False,
)

_session: Optional[requests.Session] = None


class AssessmentError(RuntimeError):
    """The completion API could not produce an assessment."""


def _get_session() -> requests.Session:
    global _session
    if _session is None:
        s = requests.Session()
        adapter = HTTPAdapter(max_retries=_RETRY)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        _session = s
    return _session


def _headers(api_key: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": OPENROUTER_REFERER,
        "X-Title": OPENROUTER_TITLE,
    }


def build_prompt(responses: Mapping[str, Any]) -> str:
    lines = "\n".join(f"{question}: {answer}" for question, answer in responses.items())
    return (
        "Based on the following interview responses, provide a personal growth assessment:\n\n"
        f"{lines}\n\n"
        "Please analyze these responses and provide:\n"
        "1. A growth score from 0-100\n"
        "2. Specific recommendations for improvement\n"
        "3. A brief analysis of current strengths and areas for development\n\n"
        "Format your response as JSON with the following structure:\n"
        "{\n"
        '  "growthScore": number,\n'
        '  "recommendations": "detailed recommendations text",\n'
        '  "analysis": "analysis of current state"\n'
        "}"
    )


def coerce_output(content: str) -> Dict[str, Any]:
    """
    Normalize the model reply to {growthScore, recommendations, analysis}.
    Non-JSON replies become the recommendations text with a neutral score.
    """
    try:
        parsed = json.loads(content)
    except ValueError:
        logger.info("assessment: non-JSON reply, using fallback shape (len=%d)", len(content))
        return {
            "growthScore": FALLBACK_SCORE,
            "recommendations": content,
            "analysis": FALLBACK_ANALYSIS,
        }
    if not isinstance(parsed, dict):
        parsed = {}

    try:
        score = int(float(parsed.get("growthScore") or 0))
    except (TypeError, ValueError):
        score = 0
    score = max(0, min(100, score))

    return {
        "growthScore": score,
        "recommendations": str(parsed.get("recommendations") or DEFAULT_RECOMMENDATIONS),
        "analysis": str(parsed.get("analysis") or DEFAULT_ANALYSIS),
    }


def generate_assessment(responses: Mapping[str, Any], api_key: Optional[str] = None) -> Dict[str, Any]:
    """Blocking call with retries/timeouts. Raises AssessmentError on any failure."""
    key = api_key if api_key is not None else OPENROUTER_API_KEY
    if not key:
        raise AssessmentError("OPENROUTER_API_KEY is required")

    body = {
        "model": OPENROUTER_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(responses)},
        ],
        "temperature": 0.7,
        "max_tokens": 1000,
    }

    try:
        resp = _get_session().post(
            OPENROUTER_URL, headers=_headers(key), json=body, timeout=(CONNECT_TIMEOUT, READ_TIMEOUT)
        )
    except requests.RequestException as e:
        logger.error("OpenRouter transport error: %r", e)
        raise AssessmentError("Failed to generate assessment. Please try again later.") from e

    if resp.status_code >= 400:
        logger.warning("OpenRouter HTTP %s: %s", resp.status_code, resp.text[:300])
        raise AssessmentError("Failed to generate assessment. Please try again later.")

    try:
        data = resp.json()
        content = data.get("choices", [{}])[0].get("message", {}).get("content", "") or ""
    except (ValueError, AttributeError, IndexError, TypeError) as e:
        logger.error("OpenRouter returned an unexpected body: %s", resp.text[:300])
        raise AssessmentError("Failed to generate assessment. Please try again later.") from e

    if not content:
        raise AssessmentError("No response from AI model")

    return coerce_output(content)
