"""Interactive commands: login/logout/whoami and the chat loops."""
