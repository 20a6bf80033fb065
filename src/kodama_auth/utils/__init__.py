"""Shared utilities."""

from kodama_auth.utils.json_serializers import json_serializer

__all__ = ["json_serializer"]
