"""Terminal user interface for mbr-tui."""

from mbr_tui.tui.app import MbrApp

__all__ = ["MbrApp"]
