"""HTTP routes for the blog platform API."""
