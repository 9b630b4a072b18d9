"""Transactional email."""

from .email_service import EmailService, format_brl, send_safely

__all__ = ["EmailService", "format_brl", "send_safely"]
