"""Domain services. Each is constructed once by the application factory."""
