"""External collaborators: storage backends."""
