"""Provisioning and teardown of the composite serverless file service."""

from __future__ import annotations

__version__ = "0.1.0"
