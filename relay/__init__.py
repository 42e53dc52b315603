"""
Provider Relay: Credential-Keeping Proxy for Third-Party AI APIs

Forwards client requests to AI text-generation, OCR and GitHub APIs while
keeping provider credentials server-side. Text generation runs through a
sequential fallback chain that tries providers in a fixed priority order
until one returns usable output.
"""

__version__ = "0.1.0"
