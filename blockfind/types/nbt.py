import collections

from mutf8.mutf8 import encode_modified_utf8, decode_modified_utf8

from blockfind.errors import MalformedTree, TruncatedData
from blockfind.types.buffer import Buffer
from blockfind.types.packed import PackedArray
from blockfind.types.string_reader import StringReader

_kinds = {}
_ids = {}


def _kind(kind_id):
    kind = _kinds.get(kind_id)
    if kind is None:
        raise MalformedTree(f"Unknown tag type {kind_id}")
    return kind


# Base types ------------------------------------------------------------------

class _Tag(object):
    __slots__ = ('value',)

    def __init__(self, value):
        self.value = value

    @classmethod
    def from_bytes(cls, bytes):
        return cls.from_buff(Buffer(bytes))

    @classmethod
    def from_buff(cls, buff):
        raise NotImplementedError

    def to_bytes(self):
        raise NotImplementedError

    def to_obj(self):
        return self.value

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.value)

    def __eq__(self, other):
        return type(self) == type(other) and self.value == other.value

    # NBT paths ---------------------------------------------------------------

    @staticmethod
    def _nbt_path_node_prefix_check(path):
        """Returns path as a StringReader, raising SyntaxError for universally invalid first characters."""
        if not isinstance(path, StringReader):
            path = StringReader(path)
        if path.can_read() and path.peek() == '.':
            raise SyntaxError(f"Invalid NBT path element at position {path.get_cursor()}: {path!r}")
        return path

    @staticmethod
    def _nbt_path_node_suffix_check(path):
        """Verifies end of path or node separator, and raises SyntaxError on failure."""
        if path.can_read():
            if path.peek() == '.':
                path.skip()
            elif path.peek() != '[':
                raise SyntaxError(f"Invalid NBT path element at position {path.get_cursor()}: {path!r}")

    def _child_at_path(self, path):
        raise KeyError(f'{type(self).__name__} cannot contain other tags, and is the end of path {path!r}')

    def at_path(self, path):
        """
        Returns the tag found at the given NBT path, such as
        ``Level.Sections[0].Y``. Raises ``KeyError`` or ``IndexError`` when
        nothing is there.
        """
        path = self._nbt_path_node_prefix_check(path)
        if not path.can_read():
            return self
        return self._child_at_path(path)

    def has_path(self, path):
        try:
            self.at_path(path)
        except (KeyError, IndexError):
            return False
        return True

    def get_path(self, path, default=None):
        try:
            return self.at_path(path)
        except (KeyError, IndexError):
            return default


class _DataTag(_Tag):
    __slots__ = ()
    fmt = None

    @classmethod
    def from_buff(cls, buff):
        return cls(buff.unpack(cls.fmt))

    def to_bytes(self):
        return Buffer.pack(self.fmt, self.value)


class _ArrayTag(_Tag):
    __slots__ = ()
    width = None

    def __len__(self):
        return len(self.value)

    @classmethod
    def from_buff(cls, buff):
        length = buff.unpack('i')
        if length < 0:
            raise MalformedTree(f"{cls.__name__} has negative length {length}")
        data = buff.read(length * (cls.width // 8))
        return cls(PackedArray.from_bytes(data, length, cls.width, cls.width))

    @classmethod
    def from_int_list(cls, int_list):
        return cls(PackedArray.from_int_list(int_list, cls.width))

    def to_bytes(self):
        data = self.value.to_bytes()
        data = Buffer.pack('i', len(data) // (self.width // 8)) + data
        return data

    def to_obj(self):
        return self.value.to_signed()

    def _child_at_path(self, path):
        path.expect('[')
        index = path.read_int()
        path.expect(']')
        if path.can_read():
            raise KeyError(f'{type(self).__name__} cannot contain other tags, and is the end of path {path!r}')
        if -len(self.value) > index or index >= len(self.value):
            raise IndexError(f'Index {index!s} not in range ({len(self.value)!s} entries)')
        return self.value.to_signed()[index]


# NBT tags --------------------------------------------------------------------

class TagByte(_DataTag):
    __slots__ = ()
    fmt = 'b'


class TagShort(_DataTag):
    __slots__ = ()
    fmt = 'h'


class TagInt(_DataTag):
    __slots__ = ()
    fmt = 'i'


class TagLong(_DataTag):
    __slots__ = ()
    fmt = 'q'


class TagFloat(_DataTag):
    __slots__ = ()
    fmt = 'f'


class TagDouble(_DataTag):
    __slots__ = ()
    fmt = 'd'


class TagString(_Tag):
    __slots__ = ()

    @classmethod
    def from_buff(cls, buff):
        string_length = buff.unpack('H')
        try:
            return cls(decode_modified_utf8(buff.read(string_length)))
        except UnicodeDecodeError as e:
            raise MalformedTree(f"Invalid modified UTF-8 string: {e}") from e

    def to_bytes(self):
        data = encode_modified_utf8(self.value)
        return Buffer.pack('H', len(data)) + data


class TagByteArray(_ArrayTag):
    __slots__ = ()
    width = 8


class TagIntArray(_ArrayTag):
    __slots__ = ()
    width = 32


class TagLongArray(_ArrayTag):
    __slots__ = ()
    width = 64


class TagList(_Tag):
    """
    A homogeneous list of unnamed tags. ``kind`` records the element type so
    that empty lists encode the same way they were read.
    """
    __slots__ = ('kind',)

    def __init__(self, value, kind=None):
        super().__init__(value)
        if kind is None and len(value) > 0:
            kind = type(value[0])
        self.kind = kind

    def __len__(self):
        return len(self.value)

    @classmethod
    def from_buff(cls, buff):
        inner_kind_id, array_length = buff.unpack('bi')
        if array_length < 0:
            raise MalformedTree(f"TagList has negative length {array_length}")
        if inner_kind_id == 0:
            if array_length > 0:
                raise MalformedTree("TagList of end tags must be empty")
            return cls([])
        inner_kind = _kind(inner_kind_id)
        return cls([inner_kind.from_buff(buff) for _ in range(array_length)], inner_kind)

    def to_bytes(self):
        kind = self.kind
        if len(self.value) > 0:
            kind = type(self.value[0])
            for tag in self.value:
                if type(tag) != kind:
                    raise ValueError(f"Mixed types in list! {kind!s} != {type(tag)!s}")

        return Buffer.pack('bi', _ids[kind], len(self.value)) + \
               b"".join(tag.to_bytes() for tag in self.value)

    def to_obj(self):
        return [tag.to_obj() for tag in self.value]

    def _child_at_path(self, path):
        path.expect('[')
        index = path.read_int()
        path.expect(']')
        self._nbt_path_node_suffix_check(path)
        if -len(self.value) > index or index >= len(self.value):
            raise IndexError(f'Index {index!s} not in range ({len(self.value)!s} entries)')
        return self.value[index].at_path(path)


class TagCompound(_Tag):
    __slots__ = ()

    root = False
    preserve_order = True

    @classmethod
    def from_buff(cls, buff):
        if cls.preserve_order:
            value = collections.OrderedDict()
        else:
            value = {}

        while True:
            kind_id = buff.unpack('b')
            if kind_id == 0:
                return cls(value)
            kind = _kind(kind_id)
            name = TagString.from_buff(buff).value
            tag = kind.from_buff(buff)
            value[name] = tag
            if cls.root:
                return cls(value)

    def to_bytes(self):
        string = b""
        for name, tag in self.value.items():
            string += Buffer.pack('b', _ids[type(tag)])
            string += TagString(name).to_bytes()
            string += tag.to_bytes()

        if len(self.value) == 0 or not self.root:
            string += Buffer.pack('b', 0)

        return string

    def to_obj(self):
        return dict((name, tag.to_obj()) for name, tag in self.value.items())

    def __contains__(self, name):
        return name in self.value

    def __getitem__(self, name):
        return self.value[name]

    def get(self, name, default=None):
        return self.value.get(name, default)

    def _child_at_path(self, path):
        if path.peek() == '[':
            raise KeyError("Cannot index into compound tag as list/array tag.")

        if path.peek() == '"':
            # Quoted tag name (allows unusual characters)
            path.skip()
            child_tag_name = path.read_string_until('"')
        else:
            child_tag_name = path.read_unquoted_name()
            if not child_tag_name:
                raise SyntaxError(f"Invalid unquoted tag name; can't start with {path.peek()!r}")

        self._nbt_path_node_suffix_check(path)
        if child_tag_name not in self.value:
            raise KeyError(f"{child_tag_name!r} not in {list(self.value.keys())!r}")
        return self.value[child_tag_name].at_path(path)


class TagRoot(TagCompound):
    __slots__ = ()
    root = True

    @classmethod
    def from_bytes(cls, bytes):
        """
        Decodes a complete NBT document. Running off the end of the data is
        reported as ``MalformedTree``.
        """
        try:
            return cls.from_buff(Buffer(bytes))
        except TruncatedData as e:
            raise MalformedTree(f"NBT data ends early: {e}") from e
        except RecursionError as e:
            raise MalformedTree("NBT data is nested too deeply") from e

    @classmethod
    def from_body(cls, body, name=u""):
        return cls({name: body})

    @property
    def name(self):
        return next(iter(self.value), None)

    @property
    def body(self):
        return next(iter(self.value.values()), None)


# Register tags ---------------------------------------------------------------

_kinds[1] = TagByte
_kinds[2] = TagShort
_kinds[3] = TagInt
_kinds[4] = TagLong
_kinds[5] = TagFloat
_kinds[6] = TagDouble
_kinds[7] = TagByteArray
_kinds[8] = TagString
_kinds[9] = TagList
_kinds[10] = TagCompound
_kinds[11] = TagIntArray
_kinds[12] = TagLongArray
_ids.update({v: k for k, v in _kinds.items()})
_ids[None] = 0


# Debug -----------------------------------------------------------------------

def alt_repr(tag, level=0):
    """
    Returns a human-readable representation of a tag using the same format as
    used the NBT specification.
    """
    name = lambda kind: type(kind).__name__.replace("Tag", "TAG_")
    indent = "  " * level

    if isinstance(tag, _ArrayTag):
        return f"{indent}{name(tag)}: {len(tag.value)} entries"

    elif isinstance(tag, TagList):
        return "%s%s: %d entries\n%s{\n%s\n%s}" % (
            indent,
            name(tag),
            len(tag.value),
            indent,
            u"\n".join(alt_repr(child, level+1) for child in tag.value),
            indent)

    elif isinstance(tag, TagRoot):
        return u"\n".join(
            alt_repr(child, level).replace(': ', '("%s"): ' % child_name, 1)
            for child_name, child in tag.value.items())

    elif isinstance(tag, TagCompound):
        return "%s%s: %d entries\n%s{\n%s\n%s}" % (
            indent,
            name(tag),
            len(tag.value),
            indent,
            u"\n".join(
                alt_repr(child, level+1).replace(': ', '("%s"): ' % child_name, 1)
                for child_name, child in tag.value.items()),
            indent)

    elif isinstance(tag, TagString):
        return f'{indent}{name(tag)}: "{tag.value}"'

    else:
        return f"{indent}{name(tag)}: {tag.value!r}"
