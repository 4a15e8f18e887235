"""Collaborator services built around the delivery engine."""

from futureme.services.scheduling import schedule_message

__all__ = ["schedule_message"]
