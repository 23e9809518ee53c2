"""Destination device collaborators."""

from stick_sync.device.device_inspector import DeviceInspector

__all__ = ["DeviceInspector"]
