"""hwhelper: step-by-step homework explanations over a rate-limited AI API."""

__version__ = "0.1.0"
