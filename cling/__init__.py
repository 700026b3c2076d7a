"""Cling reminders backend: email OTP login, reminders and icon generation."""
