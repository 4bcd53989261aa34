from __future__ import annotations
import random
import requests
from typing import Any, Dict, Optional, Tuple
from annotate_service.batch import process_batch
from annotate_service.schemas import AnnotateRequest
from ..config import REQUEST_TIMEOUT

def call_annotator(api_url: str, api_key: str, payload: Dict[str, Any],
                   timeout: int = REQUEST_TIMEOUT) -> Tuple[Dict[str, Any], Optional[str]]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    try:
        resp = requests.post(api_url, json=payload, headers=headers, timeout=timeout)
        if resp.status_code >= 400:
            return {}, f"AI annotation failed: HTTP {resp.status_code} {resp.text[:200]}"
        data = resp.json()
        if not isinstance(data, dict):
            return {}, f"AI annotation failed: expected a JSON object, got {type(data).__name__}"
        return data, None
    except (requests.RequestException, ValueError) as e:
        return {}, f"AI annotation failed: {e}"

def annotate_locally(payload: Dict[str, Any], rng: Optional[random.Random] = None
                     ) -> Tuple[Dict[str, Any], Optional[str]]:
    """Run the batch processor in-process; same contract as ``call_annotator``."""
    request = AnnotateRequest.model_validate(payload)
    return process_batch(request, rng=rng).model_dump(), None
