"""MoonGate wallet API client."""
