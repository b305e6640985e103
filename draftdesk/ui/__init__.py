from .plain_text_edit_host import PlainTextEditHost

__all__ = [
    "PlainTextEditHost",
]
