"""Storage components: staging of displaced destination entries."""

from stick_sync.storage.staging_area import StagingArea, remove_path

__all__ = ["StagingArea", "remove_path"]
