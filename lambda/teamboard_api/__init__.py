"""Lambda handlers for the teamboard tasks, notices, comments and users API."""
