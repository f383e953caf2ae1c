"""HairCare assistant backend: profiles, conversations and rule-based replies."""

__version__ = "1.0.0"
