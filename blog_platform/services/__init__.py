"""Business logic for posts, images and post queries."""
