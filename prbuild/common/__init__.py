"""Shared configuration, logging, metrics and error types."""
