"""Core domain: reply decoding, metric models and encoders."""
