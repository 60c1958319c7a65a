"""Upstream job board API client."""

from jobmirror.upstream.client import UpstreamClient

__all__ = ["UpstreamClient"]
