"""Users and administration -- User model, role detection and the admin user service."""
