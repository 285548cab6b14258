"""Request context, security and other shared helpers."""
