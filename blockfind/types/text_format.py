import enum


class TextFormats(enum.Enum):
    """
    Terminal escape codes, named after the Minecraft text colours they match
    """
    dark_green    = "\x1b[0m\x1b[32m"
    dark_aqua     = "\x1b[0m\x1b[36m"
    dark_purple   = "\x1b[0m\x1b[35m"
    gold          = "\x1b[0m\x1b[33m"
    gray          = "\x1b[0m\x1b[37m"
    green         = "\x1b[0m\x1b[32;1m"
    aqua          = "\x1b[0m\x1b[36;1m"
    red           = "\x1b[0m\x1b[31;1m"
    yellow        = "\x1b[0m\x1b[33;1m"

    reset         = "\x1b[0m"


def colorize(text, name, enabled=True):
    """
    Wrap text in the escape code of the named format, followed by a reset.
    Raises ``KeyError`` for an unknown format name.
    """
    if not enabled:
        return str(text)
    return f'{TextFormats[name].value}{text}{TextFormats.reset.value}'
