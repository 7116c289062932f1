"""Readiness probes for the local model-serving daemon."""

import logging
import shutil

import httpx

PROBE_TIMEOUT = 5.0


def is_daemon_installed(executable: str = "ollama") -> bool:
    """Check whether the local daemon binary is on PATH."""
    return shutil.which(executable) is not None


def _list_models(base_url: str, transport: httpx.BaseTransport | None) -> httpx.Response:
    with httpx.Client(timeout=PROBE_TIMEOUT, transport=transport) as client:
        return client.get(f"{base_url.rstrip('/')}/api/tags")


def is_daemon_healthy(
    base_url: str, transport: httpx.BaseTransport | None = None
) -> bool:
    """Return True when the daemon answers its model listing with 200."""
    try:
        return _list_models(base_url, transport).status_code == 200
    except httpx.HTTPError as e:
        logging.debug("Local daemon at %s not reachable: %s", base_url, e)
        return False


def is_model_available(
    base_url: str, model_name: str, transport: httpx.BaseTransport | None = None
) -> bool:
    """Return True when the daemon lists a model named exactly model_name."""
    try:
        response = _list_models(base_url, transport)
        if response.status_code != 200:
            return False
        models = response.json().get("models", [])
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logging.debug("Could not list local models at %s: %s", base_url, e)
        return False

    return any(
        isinstance(model, dict) and model.get("name") == model_name for model in models
    )
