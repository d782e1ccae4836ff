"""ASGI plumbing: response sending, error mapping, transport startup."""
