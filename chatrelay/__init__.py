"""chatrelay: streaming chat gateway in front of an Azure OpenAI deployment."""

__version__ = "0.1.0"
