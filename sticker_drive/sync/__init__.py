"""Google Drive reconciliation pipeline.

Mirrors a Drive folder tree into the sticker catalogue, either with a full
folder scan or incrementally from the Drive change feed.

Usage:
    python -m sticker_drive.sync                 # Full folder scan (default)
    python -m sticker_drive.sync --incremental   # Change feed only
    python -m sticker_drive.sync --full --setup-webhook
"""
