"""
handlers/ - Presentation Layer
================================
Telegram command, text and job-queue handlers. Each handler reads the
update, delegates to a Service and sends the reply back to the user.
No billing rules live here.
"""
