"""Marketplace REST and live-notification routes."""
from .common import Services, build_services, get_services, set_services

__all__ = ["Services", "build_services", "get_services", "set_services"]
