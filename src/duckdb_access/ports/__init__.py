"""Ports - contracts between the application and its adapters."""
