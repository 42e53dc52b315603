"""
Proxy module: Credential-injecting pass-throughs.

- ocr.py: base64 file -> EdenAI OCR (sync and async jobs)
- github.py: /github/* -> api.github.com
"""

from relay.proxy.github import build_github_url, forward_github
from relay.proxy.ocr import OcrPlan, decode_file, plan_ocr, poll_ocr_job, submit_ocr
from relay.proxy.response import ProxyResponse

__all__ = [
    "ProxyResponse",
    "build_github_url",
    "forward_github",
    "OcrPlan",
    "decode_file",
    "plan_ocr",
    "submit_ocr",
    "poll_ocr_job",
]
