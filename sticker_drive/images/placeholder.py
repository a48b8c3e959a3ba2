"""Placeholder returned when every image strategy fails."""

from __future__ import annotations

PLACEHOLDER_CONTENT_TYPE = "image/svg+xml"

PLACEHOLDER_SVG = b"""<svg xmlns="http://www.w3.org/2000/svg" width="400" height="400" viewBox="0 0 400 400">
  <rect width="400" height="400" fill="#f3f4f6"/>
  <rect x="130" y="120" width="140" height="110" rx="10" fill="none" stroke="#9ca3af" stroke-width="8"/>
  <circle cx="170" cy="160" r="14" fill="#9ca3af"/>
  <path d="M140 220l45-45 30 30 20-20 25 35z" fill="#9ca3af"/>
  <text x="200" y="280" font-family="sans-serif" font-size="20" text-anchor="middle" fill="#6b7280">Image unavailable</text>
</svg>
"""
