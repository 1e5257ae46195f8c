"""
Firmware Executor - Redfish firmware deployment for management controllers.

Decides whether a named firmware needs updating and, if so, pushes the image
(and optional signature) to the device's update service.
"""

__version__ = "1.0.0"
