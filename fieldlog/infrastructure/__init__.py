"""Infrastructure: backend drivers and their construction from settings."""
