"""FastAPI facade for the WhatsApp relay."""
