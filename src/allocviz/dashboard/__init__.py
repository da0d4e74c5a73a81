"""Qt dashboard for the allocation charts (requires the ``gui`` extra)."""

from .common import QT_IMPORT_ERROR, require_qt

__all__ = ["QT_IMPORT_ERROR", "require_qt"]
