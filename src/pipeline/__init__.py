"""Pipeline orchestrators and router."""
