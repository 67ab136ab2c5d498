"""inkwell — photographed journal pages to durable, editable journal entries."""

__version__ = "0.1.0"
