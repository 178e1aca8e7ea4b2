"""Shared configuration, logging, error handling and domain records."""
