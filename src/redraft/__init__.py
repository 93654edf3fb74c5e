"""redraft -- adaptive rewrite-and-rescore engine with chainable text actions."""

from __future__ import annotations

__version__ = "0.1.0"
