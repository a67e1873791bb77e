"""Find links and fragments in HTML, Markdown and plain text, and filter them for checking."""

__version__ = "0.18.1"