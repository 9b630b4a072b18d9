"""Shipment tracking."""

from .tracking_info import UNKNOWN_STATUS, TrackingInfo, build_tracking_info, describe_status

__all__ = ["UNKNOWN_STATUS", "TrackingInfo", "build_tracking_info", "describe_status"]
