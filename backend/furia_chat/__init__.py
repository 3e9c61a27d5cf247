"""ChatFurioso - FURIA Esports fan chatbot backend."""

__version__ = "1.0.0"
