"""Administrative client for the news content-management backend."""
