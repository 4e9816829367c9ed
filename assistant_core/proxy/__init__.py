"""Local HTTP proxy that forwards chat requests to the language model provider."""
