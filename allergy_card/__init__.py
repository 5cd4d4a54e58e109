"""Allergy Card Mailer - render a personalized allergy card and email it"""

__version__ = "1.0.0"
