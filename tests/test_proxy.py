"""
Pass-through Proxy Tests

Tests for the OCR and GitHub pass-through helpers against fake upstreams.

Test Categories:
1. TestDecodeFile / TestPlanOcr - input handling
2. TestSubmitOcr / TestPollOcrJob - EdenAI OCR translation
3. TestGithubProxy - URL mapping, headers and status pass-through
"""

import base64

import httpx
import pytest

from relay.config import Settings
from relay.errors import InputError, ProviderNotConfiguredError
from relay.proxy.github import build_github_url, forward_github
from relay.proxy.ocr import decode_file, plan_ocr, poll_ocr_job, submit_ocr

from fixtures import EDENAI_KEY, GITHUB_TOKEN, error_response, hang

PDF_B64 = base64.b64encode(b"%PDF-1.4 fake").decode()
PNG_B64 = base64.b64encode(b"\x89PNG fake").decode()


class TestDecodeFile:
    """Tests for decode_file()."""

    def test_plain_base64(self):
        assert decode_file(PDF_B64) == b"%PDF-1.4 fake"

    def test_data_url_prefix_is_stripped(self):
        assert decode_file(f"data:application/pdf;base64,{PDF_B64}") == b"%PDF-1.4 fake"

    def test_invalid_base64(self):
        with pytest.raises(InputError) as exc_info:
            decode_file("not base64 at all!!")

        assert exc_info.value.field == "file"

    def test_empty_payload(self):
        with pytest.raises(InputError):
            decode_file("")


class TestPlanOcr:
    """Tests for plan_ocr()."""

    def test_pdf_goes_async_to_mistral(self):
        plan = plan_ocr("application/pdf")

        assert plan.use_async
        assert plan.provider == "mistral"

    def test_image_goes_sync_to_google(self):
        plan = plan_ocr("image/png")

        assert not plan.use_async
        assert plan.provider == "google"

    def test_explicit_provider_overrides_default(self):
        assert plan_ocr("application/pdf", "amazon").provider == "amazon"

    def test_missing_type_is_sync(self):
        assert not plan_ocr(None).use_async


class TestSubmitOcr:
    """Tests for submit_ocr()."""

    @pytest.mark.asyncio
    async def test_pdf_creates_async_job(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(
            200, json={"public_id": "job-123", "status": "processing"}
        )

        result = await submit_ocr(
            PDF_B64, "resume.pdf", "application/pdf", settings=settings, clients=clients
        )

        assert result.status_code == 200
        assert result.body == {
            "success": True,
            "jobId": "job-123",
            "status": "processing",
            "provider": "mistral",
        }
        request = fake_providers.requests[0]
        assert request.url.path == "/v2/ocr/ocr_async"
        assert request.headers["Authorization"] == f"Bearer {EDENAI_KEY}"
        assert b"%PDF-1.4 fake" in request.content
        assert b"mistral" in request.content

    @pytest.mark.asyncio
    async def test_image_returns_text_synchronously(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(
            200, json={"google": {"status": "success", "text": "Jane Doe\nEngineer"}}
        )

        result = await submit_ocr(PNG_B64, "scan.png", "image/png", settings=settings, clients=clients)

        assert result.status_code == 200
        assert result.body["success"] is True
        assert result.body["text"] == "Jane Doe\nEngineer"
        assert result.body["confidence"] == settings.ocr_confidence_placeholder
        assert fake_providers.requests[0].url.path == "/v2/ocr/ocr"

    @pytest.mark.asyncio
    async def test_sync_in_band_failure(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(
            200, json={"google": {"status": "fail", "error": {"message": "Unsupported image"}}}
        )

        result = await submit_ocr(PNG_B64, "scan.png", "image/png", settings=settings, clients=clients)

        assert result.status_code == 502
        assert result.body == {"success": False, "error": "Unsupported image"}

    @pytest.mark.asyncio
    async def test_upstream_status_passed_through(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = error_response(402, "Not enough credits")

        result = await submit_ocr(PDF_B64, "a.pdf", "application/pdf", settings=settings, clients=clients)

        assert result.status_code == 402
        assert result.body["error"] == "Not enough credits"

    @pytest.mark.asyncio
    async def test_timeout_is_504(self, clients, fake_providers):
        settings = Settings(_env_file=None, edenai_api_key=EDENAI_KEY, attempt_timeout_ms=100)
        fake_providers.responses["ocr"] = hang

        result = await submit_ocr(PDF_B64, "a.pdf", "application/pdf", settings=settings, clients=clients)

        assert result.status_code == 504
        assert result.body["success"] is False

    @pytest.mark.asyncio
    async def test_non_json_success_body_is_502(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(200, content=b"<html>gateway</html>")

        result = await submit_ocr(PNG_B64, "scan.png", "image/png", settings=settings, clients=clients)

        assert result.status_code == 502
        assert result.body == {"success": False, "error": "Invalid OCR response"}

    @pytest.mark.asyncio
    async def test_non_json_async_body_is_502(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(200, content=b"<html>gateway</html>")

        result = await submit_ocr(PDF_B64, "a.pdf", "application/pdf", settings=settings, clients=clients)

        assert result.status_code == 502
        assert result.body["success"] is False

    @pytest.mark.asyncio
    async def test_non_dict_provider_block_is_502(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(200, json={"google": "oops"})

        result = await submit_ocr(PNG_B64, "scan.png", "image/png", settings=settings, clients=clients)

        assert result.status_code == 502
        assert result.body == {"success": False, "error": "Invalid OCR response"}

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, clients, fake_providers):
        with pytest.raises(ProviderNotConfiguredError):
            await submit_ocr(
                PDF_B64, "a.pdf", "application/pdf", settings=Settings(_env_file=None), clients=clients
            )

        assert fake_providers.calls == []

    @pytest.mark.asyncio
    async def test_bad_base64_contacts_nobody(self, settings, clients, fake_providers):
        with pytest.raises(InputError):
            await submit_ocr("%%%", "a.pdf", "application/pdf", settings=settings, clients=clients)

        assert fake_providers.calls == []


class TestPollOcrJob:
    """Tests for poll_ocr_job()."""

    @pytest.mark.asyncio
    async def test_finished_job_returns_text(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(
            200,
            json={"status": "finished", "results": {"mistral": {"raw_text": "Page one"}}},
        )

        result = await poll_ocr_job("job-123", settings=settings, clients=clients)

        assert result.body == {
            "success": True,
            "status": "finished",
            "jobId": "job-123",
            "text": "Page one",
        }
        assert fake_providers.requests[0].url.path == "/v2/ocr/ocr_async/job-123"

    @pytest.mark.asyncio
    async def test_processing_job(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(200, json={"status": "processing"})

        result = await poll_ocr_job("job-123", settings=settings, clients=clients)

        assert result.body["status"] == "processing"
        assert result.body["success"] is True

    @pytest.mark.asyncio
    async def test_failed_job(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(
            200, json={"status": "failed", "error": {"message": "Corrupt PDF"}}
        )

        result = await poll_ocr_job("job-123", settings=settings, clients=clients)

        assert result.body["status"] == "failed"
        assert result.body["error"] == "Corrupt PDF"

    @pytest.mark.asyncio
    async def test_finished_without_text_is_failed(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(200, json={"status": "finished", "results": {}})

        result = await poll_ocr_job("job-123", settings=settings, clients=clients)

        assert result.body["success"] is False
        assert result.body["status"] == "failed"

    @pytest.mark.asyncio
    async def test_non_json_body_is_502(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(200, content=b"<html>gateway</html>")

        result = await poll_ocr_job("job-123", settings=settings, clients=clients)

        assert result.status_code == 502
        assert result.body == {"success": False, "error": "Invalid OCR response"}

    @pytest.mark.asyncio
    async def test_non_dict_results_is_failed(self, settings, clients, fake_providers):
        fake_providers.responses["ocr"] = httpx.Response(200, json={"status": "finished", "results": ["x"]})

        result = await poll_ocr_job("job-123", settings=settings, clients=clients)

        assert result.body["status"] == "failed"


class TestGithubProxy:
    """Tests for the GitHub pass-through."""

    def test_build_url_with_query(self):
        assert (
            build_github_url("search/repositories", "q=react&sort=stars")
            == "https://api.github.com/search/repositories?q=react&sort=stars"
        )

    def test_build_url_strips_leading_slash(self):
        assert build_github_url("/users/octocat") == "https://api.github.com/users/octocat"

    @pytest.mark.asyncio
    async def test_forwards_with_token_and_headers(self, settings, clients, fake_providers):
        fake_providers.responses["github"] = httpx.Response(200, json={"total_count": 1, "items": []})

        result = await forward_github(
            "GET", "search/repositories", "q=react", settings=settings, clients=clients
        )

        assert result.status_code == 200
        assert result.body == {"total_count": 1, "items": []}
        request = fake_providers.requests[0]
        assert request.url.path == "/search/repositories"
        assert request.url.params["q"] == "react"
        assert request.headers["Authorization"] == f"Bearer {GITHUB_TOKEN}"
        assert request.headers["Accept"] == "application/vnd.github.v3+json"
        assert request.headers["User-Agent"] == settings.github_user_agent

    @pytest.mark.asyncio
    async def test_upstream_status_is_preserved(self, settings, clients, fake_providers):
        fake_providers.responses["github"] = httpx.Response(404, json={"message": "Not Found"})

        result = await forward_github("GET", "repos/none/none", settings=settings, clients=clients)

        assert result.status_code == 404
        assert result.body == {"message": "Not Found"}

    @pytest.mark.asyncio
    async def test_empty_upstream_body_stays_empty(self, settings, clients, fake_providers):
        fake_providers.responses["github"] = httpx.Response(204)

        result = await forward_github("GET", "user/starred/octocat/hello", settings=settings, clients=clients)

        assert result.status_code == 204
        assert result.body is None

    @pytest.mark.asyncio
    async def test_post_body_forwarded(self, settings, clients, fake_providers):
        fake_providers.responses["github"] = httpx.Response(201, json={"id": 1})

        result = await forward_github(
            "POST", "gists", body=b'{"public": false}', settings=settings, clients=clients
        )

        assert result.status_code == 201
        request = fake_providers.requests[0]
        assert request.method == "POST"
        assert request.content == b'{"public": false}'

    @pytest.mark.asyncio
    async def test_transport_error_is_500(self, settings, clients, fake_providers):
        fake_providers.responses["github"] = httpx.ConnectError("unreachable")

        result = await forward_github("GET", "users/octocat", settings=settings, clients=clients)

        assert result.status_code == 500
        assert result.body["error"] == "GitHub API request failed"

    @pytest.mark.asyncio
    async def test_missing_token_raises(self, clients, fake_providers):
        with pytest.raises(ProviderNotConfiguredError):
            await forward_github("GET", "users/octocat", settings=Settings(_env_file=None), clients=clients)

        assert fake_providers.calls == []
