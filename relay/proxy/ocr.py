"""
OCR pass-through to EdenAI.

Clients send the file as base64 JSON; the relay decodes it, uploads it as
multipart form data with the server-side EdenAI key and translates the
answer into a small {success, text | jobId, ...} shape.

PDFs go to the asynchronous OCR endpoint (the caller polls
GET /ocr/{job_id}); everything else is processed synchronously.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any

from relay.config import Settings, get_settings, has_secret
from relay.dispatcher.adapters import read_json
from relay.dispatcher.clients import ProviderClients, get_clients
from relay.dispatcher.timeout import TimeoutGuard
from relay.errors import AttemptTimeoutError, InputError, ProviderNotConfiguredError
from relay.proxy.response import ProxyResponse

logger = logging.getLogger(__name__)

EDENAI_OCR_URL = "https://api.edenai.run/v2/ocr/ocr"
EDENAI_OCR_ASYNC_URL = "https://api.edenai.run/v2/ocr/ocr_async"

ASYNC_PROVIDER = "mistral"
SYNC_PROVIDER = "google"


@dataclass(frozen=True)
class OcrPlan:
    """Which EdenAI OCR provider and mode a file is sent to."""

    provider: str
    use_async: bool


def decode_file(encoded: str) -> bytes:
    """
    Decode a base64 file payload.

    A data-URL prefix ("data:application/pdf;base64,") is tolerated.

    Raises:
        InputError: If the payload is not valid base64 or decodes to nothing.
    """
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    try:
        content = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError("File is not valid base64", field="file") from e
    if not content:
        raise InputError("File is empty", field="file")
    return content


def plan_ocr(file_type: str | None, provider: str | None = None) -> OcrPlan:
    """
    Choose the OCR provider and mode.

    PDFs use the asynchronous endpoint; an explicit provider name
    overrides the default provider for that mode.
    """
    use_async = (file_type or "").startswith("application/pdf")
    default = ASYNC_PROVIDER if use_async else SYNC_PROVIDER
    return OcrPlan(provider=provider or default, use_async=use_async)


def _auth_headers(settings: Settings) -> dict[str, str]:
    if not has_secret(settings.edenai_api_key):
        raise ProviderNotConfiguredError("OCR provider not configured")
    return {"Authorization": f"Bearer {settings.edenai_api_key.get_secret_value()}"}


def _upstream_error(response, fallback: str) -> ProxyResponse:
    body = read_json(response)
    message = fallback
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            message = str(error["message"])
        elif isinstance(error, str) and error:
            message = error
    return ProxyResponse(
        status_code=response.status_code,
        body={"success": False, "error": message},
    )


def _invalid_response() -> ProxyResponse:
    return ProxyResponse(status_code=502, body={"success": False, "error": "Invalid OCR response"})


def _first_text(results: Any) -> str | None:
    if not isinstance(results, dict):
        return None
    for value in results.values():
        if isinstance(value, dict):
            text = value.get("raw_text") or value.get("text")
            if text:
                return text
    return None


async def submit_ocr(
    file: str,
    file_name: str | None,
    file_type: str | None,
    provider: str | None = None,
    settings: Settings | None = None,
    clients: ProviderClients | None = None,
) -> ProxyResponse:
    """
    Upload a file for OCR.

    Args:
        file: Base64-encoded file content.
        file_name: Original file name, forwarded in the multipart part.
        file_type: MIME type; decides sync vs async processing.
        provider: Optional EdenAI OCR provider override.

    Returns:
        ProxyResponse with {success, text, confidence, provider} for sync
        jobs or {success, jobId, status, provider} for async jobs.
    """
    settings = settings or get_settings()
    clients = clients or get_clients()
    headers = _auth_headers(settings)
    content = decode_file(file)
    plan = plan_ocr(file_type, provider)
    url = EDENAI_OCR_ASYNC_URL if plan.use_async else EDENAI_OCR_URL

    logger.info(
        f"OCR upload: provider={plan.provider}, async={plan.use_async}, "
        f"bytes={len(content)}"
    )

    files = {
        "file": (
            file_name or "upload",
            content,
            file_type or "application/octet-stream",
        )
    }
    try:
        response = await TimeoutGuard(settings.attempt_timeout_ms).run(
            clients.http.post(
                url, headers=headers, data={"providers": plan.provider}, files=files
            )
        )
    except AttemptTimeoutError as e:
        return ProxyResponse(status_code=504, body={"success": False, "error": str(e)})
    except Exception as e:
        logger.error(f"OCR upload failed: {type(e).__name__}")
        return ProxyResponse(
            status_code=502, body={"success": False, "error": f"OCR request failed: {e}"}
        )

    if not response.is_success:
        return _upstream_error(response, f"OCR API failed: {response.status_code}")

    data = read_json(response)
    if not isinstance(data, dict):
        logger.error("OCR upload returned a non-JSON body")
        return _invalid_response()

    if plan.use_async:
        job_id = data.get("public_id") or data.get("id")
        if not job_id:
            return ProxyResponse(
                status_code=502, body={"success": False, "error": "OCR job was not created"}
            )
        return ProxyResponse(
            status_code=200,
            body={
                "success": True,
                "jobId": job_id,
                "status": data.get("status", "processing"),
                "provider": plan.provider,
            },
        )

    result = data.get(plan.provider) or {}
    if not isinstance(result, dict):
        return _invalid_response()
    if result.get("status") == "fail":
        error = result.get("error") or {}
        message = error.get("message") if isinstance(error, dict) else str(error)
        return ProxyResponse(
            status_code=502, body={"success": False, "error": message or "OCR failed"}
        )

    text = result.get("text")
    if not text:
        return ProxyResponse(
            status_code=502, body={"success": False, "error": "No text extracted from OCR"}
        )

    return ProxyResponse(
        status_code=200,
        body={
            "success": True,
            "text": text,
            # Placeholder value; EdenAI's sync OCR reports no overall confidence
            "confidence": settings.ocr_confidence_placeholder,
            "provider": plan.provider,
        },
    )


async def poll_ocr_job(
    job_id: str,
    settings: Settings | None = None,
    clients: ProviderClients | None = None,
) -> ProxyResponse:
    """
    Fetch the current state of an asynchronous OCR job once.

    Returns:
        ProxyResponse with {success, status, text?} where status is
        "finished", "processing" or "failed".
    """
    settings = settings or get_settings()
    clients = clients or get_clients()
    headers = _auth_headers(settings)

    try:
        response = await TimeoutGuard(settings.attempt_timeout_ms).run(
            clients.http.get(f"{EDENAI_OCR_ASYNC_URL}/{job_id}", headers=headers)
        )
    except AttemptTimeoutError as e:
        return ProxyResponse(status_code=504, body={"success": False, "error": str(e)})
    except Exception as e:
        logger.error(f"OCR poll failed: {type(e).__name__}")
        return ProxyResponse(
            status_code=502, body={"success": False, "error": f"OCR request failed: {e}"}
        )

    if not response.is_success:
        return _upstream_error(response, f"OCR job lookup failed: {response.status_code}")

    data = read_json(response)
    if not isinstance(data, dict):
        logger.error("OCR poll returned a non-JSON body")
        return _invalid_response()

    status = data.get("status", "processing")

    if status == "finished":
        text = _first_text(data.get("results") or {})
        if text:
            return ProxyResponse(
                status_code=200,
                body={"success": True, "status": "finished", "jobId": job_id, "text": text},
            )
        return ProxyResponse(
            status_code=200,
            body={
                "success": False,
                "status": "failed",
                "jobId": job_id,
                "error": "No text extracted from OCR",
            },
        )

    if status == "failed":
        error = data.get("error")
        message = error.get("message") if isinstance(error, dict) else error
        return ProxyResponse(
            status_code=200,
            body={
                "success": False,
                "status": "failed",
                "jobId": job_id,
                "error": message or "OCR job failed",
            },
        )

    return ProxyResponse(
        status_code=200, body={"success": True, "status": "processing", "jobId": job_id}
    )
