import re


class StringReader(object):
    """
    A cursor over an NBT path such as ``Level.Sections[0].Palette``.

    Modelled on brigadier's StringReader, keeping only what path lookups
    need.
    """
    regexUnquotedString = re.compile(r'''[^ .\[\]{}"]''')

    def __init__(self, string_in):
        if isinstance(string_in, type(self)):
            self.string = string_in.string
            self.cursor = string_in.cursor
        elif isinstance(string_in, str):
            self.string = string_in
            self.cursor = 0
        else:
            raise TypeError('Cannot parse type ' + str(type(string_in)))

    def __len__(self):
        return len(self.string)

    def __repr__(self):
        return f'{type(self).__name__}({self.get_read()!r}<--[HERE]{self.get_remaining()!r})'

    def get_string(self):
        return self.string

    def get_cursor(self):
        return self.cursor

    def set_cursor(self, cursor):
        self.cursor = cursor

    def get_read(self):
        """
        Return the part of the source string that's already been read
        """
        return self.string[:self.cursor]

    def get_remaining(self):
        return self.string[self.cursor:]

    def can_read(self, length=1):
        return self.cursor + length <= len(self.string)

    def peek(self, offset=0):
        return self.string[self.cursor + offset]

    def read(self):
        self.cursor += 1
        return self.string[self.cursor - 1]

    def skip(self):
        self.cursor += 1

    def read_int(self):
        start = self.cursor
        while self.can_read() and self.peek() in '0123456789-':
            self.skip()
        number = self.string[start:self.cursor]
        if len(number) == 0:
            raise SyntaxError("could not find an integer: end of string, or first character not in [-0-9]")
        try:
            return int(number)
        except ValueError:
            self.cursor = start
            raise SyntaxError(f"could not parse {number!r} as an integer")

    def read_unquoted_name(self):
        start = self.cursor
        while self.can_read() and self.regexUnquotedString.match(self.peek()):
            self.skip()
        return self.string[start:self.cursor]

    def read_string_until(self, terminator):
        result = ''
        escaped = False
        while self.can_read():
            c = self.read()
            if escaped:
                if c == terminator or c == '\\':
                    result += c
                    escaped = False
                else:
                    self.cursor -= 1
                    raise SyntaxError(f"Unexpected escaped character {c!r}")
            elif c == '\\':
                escaped = True
            elif c == terminator:
                return result
            else:
                result += c

        raise SyntaxError("expected end quote")

    def expect(self, c):
        if not self.can_read() or self.peek() != c:
            raise SyntaxError(f"Expected character {c!r} at ->{self.get_remaining()!r}")
        self.skip()
