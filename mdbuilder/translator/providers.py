"""
DeepL API calls.

Each function takes a DeepLService instance plus call arguments and returns the
decoded payload. HTTP and transport failures are converted to TranslationError
(or GlossaryError for glossary endpoints).
"""

from typing import Any, Dict, List, Optional

import httpx

from mdbuilder.logger import get_logger
from mdbuilder.translator.exceptions import GlossaryError, TranslationError

logger = get_logger(__name__)


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Convert timeout configuration to httpx.Timeout object.

    Args:
        timeout_config: Either a number (read timeout) or a dict with
            connect, write, read, pool keys
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 30.0),
            read=timeout_config.get('read', 30.0),
            pool=timeout_config.get('pool', 10.0),
        )
    timeout_value = float(timeout_config) if timeout_config else 30.0
    return httpx.Timeout(connect=10.0, write=30.0, read=timeout_value, pool=10.0)


def describe_http_error(e: httpx.HTTPStatusError) -> str:
    """Extract the service's error message from a failed response."""
    try:
        error_json = e.response.json()
        if isinstance(error_json, dict) and 'message' in error_json:
            return str(error_json['message'])
    except ValueError:
        pass
    return e.response.text[:500] if e.response.text else "No details"


def _request(service, method: str, path: str, error_cls=TranslationError, **kwargs) -> httpx.Response:
    url = f"{service.api_url.rstrip('/')}{path}"
    headers = {"Authorization": f"DeepL-Auth-Key {service.api_key}"}

    try:
        with httpx.Client(timeout=get_httpx_timeout(service.timeout), transport=service.transport) as client:
            response = client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
            return response
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        logger.error(f"DeepL API HTTP error: {status_code} - {e.response.text[:200]}")
        raise error_cls(
            f"DeepL API error ({status_code}): {describe_http_error(e)}",
            code="api_error",
            details={"status_code": status_code, "path": path},
        ) from e
    except httpx.TimeoutException as e:
        raise error_cls("DeepL API request timeout", code="timeout", details={"path": path}) from e
    except httpx.HTTPError as e:
        logger.error(f"DeepL API call failed: {e}")
        raise error_cls(f"DeepL API call failed: {e}", code="api_error", details={"path": path}) from e


def call_translate_api(
    service,
    texts: List[str],
    target_lang: str,
    source_lang: Optional[str] = None,
    glossary_id: Optional[str] = None,
) -> List[str]:
    """POST /v2/translate and return the translated texts in input order."""
    body: Dict[str, Any] = {
        "text": texts,
        "target_lang": target_lang,
        "preserve_formatting": True,
    }
    if source_lang:
        body["source_lang"] = source_lang
    if glossary_id:
        body["glossary_id"] = glossary_id

    logger.debug(f"Calling DeepL translate: {len(texts)} text(s) -> {target_lang}")
    response = _request(service, "POST", "/v2/translate", json=body)

    try:
        result = response.json()
        translations = result["translations"]
        return [item["text"] for item in translations]
    except (ValueError, KeyError, TypeError) as e:
        raise TranslationError(
            f"Unexpected DeepL translate response: {response.text[:200]}",
            code="bad_response",
        ) from e


def call_list_glossaries(service) -> List[Dict[str, Any]]:
    """GET /v2/glossaries."""
    response = _request(service, "GET", "/v2/glossaries", error_cls=GlossaryError)
    try:
        return list(response.json().get("glossaries", []))
    except (ValueError, AttributeError) as e:
        raise GlossaryError("Unexpected DeepL glossary list response", code="bad_response") from e


def call_create_glossary(
    service,
    name: str,
    source_lang: str,
    target_lang: str,
    entries: Dict[str, str],
) -> str:
    """POST /v2/glossaries with TSV entries; returns the new glossary id."""
    tsv = "\n".join(
        f"{source}\t{target}"
        for source, target in entries.items()
        if source.strip() and target.strip()
    )
    body = {
        "name": name,
        "source_lang": source_lang,
        "target_lang": target_lang,
        "entries": tsv,
        "entries_format": "tsv",
    }

    logger.debug(f"Creating DeepL glossary '{name}' ({source_lang} -> {target_lang}, {len(entries)} entries)")
    response = _request(service, "POST", "/v2/glossaries", error_cls=GlossaryError, json=body)
    try:
        return response.json()["glossary_id"]
    except (ValueError, KeyError, TypeError) as e:
        raise GlossaryError("Unexpected DeepL glossary create response", code="bad_response") from e
