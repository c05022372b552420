"""Core framework components."""
