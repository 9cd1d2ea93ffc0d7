from .memory import Memory, MEMORY_SIZE, FONT, FONT_START, glyph_address
