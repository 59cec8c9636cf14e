"""QuizDesk backend: quiz administration and attempt lifecycle API."""

__version__ = "1.0.0"
