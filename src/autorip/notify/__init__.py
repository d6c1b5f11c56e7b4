"""Notification integrations."""
