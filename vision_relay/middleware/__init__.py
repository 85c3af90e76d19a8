"""Agent middleware for vision-relay."""

from vision_relay.middleware.image_read import ImageReadMiddleware

__all__ = ["ImageReadMiddleware"]
