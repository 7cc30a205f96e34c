"""streamchat: streaming chat-completion client with tool calling."""

__version__ = "0.1.0"
