"""HTTP API for the chat client."""
