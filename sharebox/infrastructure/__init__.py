"""Infrastructure layer: storage backends, multipart parsing, storage exceptions.

Implements the protocols the application layer depends on.
"""
