"""HTTP surface: image proxy, sync triggers, Drive webhook."""

from sticker_drive.web.app import create_app

__all__ = ["create_app"]
